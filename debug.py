# debug.py
from __future__ import annotations
import logging
import os
from typing import Dict

COMPONENTS = (
    "alphabet",
    "permutation",
    "rotor",
    "stepping",
    "plugboard",
    "machine",
    "config",
)


class Debug:
    _root_configured: bool = False          # class-level guard

    def __init__(self, *, log_to: str | None = None) -> None:
        """
        If `log_to` is given, messages also stream to that file.
        Components listed in ``ENIGMA_DEBUG`` (comma separated, or ``all``)
        start enabled.
        """
        if not Debug._root_configured:
            handlers: list[logging.Handler] = [logging.StreamHandler()]
            if log_to:
                handlers.append(logging.FileHandler(log_to, encoding="utf-8"))

            logging.basicConfig(
                level=logging.DEBUG,
                format="[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                handlers=handlers,
            )
            Debug._root_configured = True

        self.logger = logging.getLogger("ENIGMA")
        self.enabled = True        # global switch
        self.components: Dict[str, bool] = {c: False for c in COMPONENTS}
        self._apply_env(os.getenv("ENIGMA_DEBUG", ""))

    def _apply_env(self, raw: str) -> None:
        names = [n.strip().lower() for n in raw.split(",") if n.strip()]
        if "all" in names:
            names = list(COMPONENTS)
        for name in names:
            # unknown names are ignored here, unlike enable()
            if name in self.components:
                self.components[name] = True

    # ── logging API ──────────────────────────────────────────────
    def active(self, component: str) -> bool:
        return self.enabled and self.components.get(component, False)

    def log(self, component: str, message: str, *args: object) -> None:
        if self.active(component):
            self.logger.debug("[%s] " + message, component.upper(), *args)

    # ── component toggles ────────────────────────────────────────
    def enable(self, *components: str) -> None:
        for c in components:
            self._require(c)
            self.components[c] = True

    def disable(self, *components: str) -> None:
        for c in components:
            self._require(c)
            self.components[c] = False

    def toggle_global(self, state: bool) -> None:
        """Switch every component on/off at once."""
        self.enabled = state

    def status(self) -> Dict[str, bool]:
        """Return a *copy* of the current component map."""
        return self.components.copy()

    def _require(self, component: str) -> None:
        if component not in self.components:
            raise ValueError(f"No such component: {component!r}")

    def __repr__(self) -> str:
        active = [k for k, v in self.components.items() if v]
        return f"<Debug enabled={self.enabled} active={active}>"
