from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, TypeVar

from ._errors import require


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._protocols import ServiceBundle, ServiceRegistry

    R = TypeVar("R", bound=ServiceRegistry)
    BundleLike = ServiceBundle | type[ServiceBundle]


def register_bundle(container: R, bundle: BundleLike) -> R:
    """Apply a single bundle to `container`.

    A bundle class is instantiated with no arguments first; whatever its
    constructor raises propagates.
    """
    require(container, "container")
    require(bundle, "bundle")

    _load(container, bundle)
    return container


def register_bundles(container: R, *bundles: BundleLike) -> R:
    """Apply bundles in the order given. Later bundles may override earlier registrations."""
    require(container, "container")
    return _load_all(container, bundles)


def register_bundles_from(container: R, bundles: Iterable[BundleLike]) -> R:
    require(container, "container")
    require(bundles, "bundles")
    return _load_all(container, bundles)


def _load_all(container: R, bundles: Iterable[BundleLike]) -> R:
    # No rollback: bundles loaded before a failure stay applied.
    for bundle in bundles:
        _load(container, bundle)
    return container


def _load(container: ServiceRegistry, bundle: BundleLike) -> None:
    if inspect.isclass(bundle):
        bundle = bundle()

    logger.debug("Loading service bundle %s", type(bundle).__qualname__)
    bundle.load(container)
