from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Iterable, List

from fastapi import APIRouter


logger = logging.getLogger(__name__)

MODULES_PACKAGE = "app.modules"


def iter_submodules(package: str = MODULES_PACKAGE) -> Iterable[str]:
    pkg = importlib.import_module(package)
    for m in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda info: info.name):
        if m.ispkg:
            yield f"{package}.{m.name}"


def import_module_models(module_pkg: str) -> bool:
    try:
        importlib.import_module(f"{module_pkg}.models")
    except ModuleNotFoundError as exc:
        # Only a missing models module is acceptable; broken imports inside it are not.
        if exc.name != f"{module_pkg}.models":
            raise
        return False
    return True


def import_all_models() -> list[str]:
    """Register every feature module's tables on the shared Base."""
    return [mod for mod in iter_submodules() if import_module_models(mod)]


def collect_routers() -> List[APIRouter]:
    routers: List[APIRouter] = []
    for mod in iter_submodules():
        import_module_models(mod)
        try:
            router_mod = importlib.import_module(f"{mod}.router")
        except ModuleNotFoundError as exc:
            if exc.name == f"{mod}.router":
                continue
            raise
        router = getattr(router_mod, "router", None)
        if router is not None:
            logger.debug("Registering router from %s", mod)
            routers.append(router)
        # Some modules expose additional top-level routes (e.g. /s/{code})
        public_router = getattr(router_mod, "public_router", None)
        if public_router is not None:
            routers.append(public_router)
    return routers
