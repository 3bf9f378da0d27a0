from dataclasses import dataclass, field
from typing import Tuple

from playback.config import SANDBOX_FLAGS

# Token vocabulary of the HTML iframe sandbox attribute
KNOWN_SANDBOX_FLAGS = frozenset({
    "allow-downloads",
    "allow-forms",
    "allow-modals",
    "allow-orientation-lock",
    "allow-pointer-lock",
    "allow-popups",
    "allow-popups-to-escape-sandbox",
    "allow-presentation",
    "allow-same-origin",
    "allow-scripts",
    "allow-top-navigation",
    "allow-top-navigation-by-user-activation",
    "allow-top-navigation-to-custom-protocols",
})


@dataclass(frozen=True)
class RenderableDocument:
    """
    Archived HTML ready for display.
    Invariant: carries exactly one injected base directive and exactly one
    instrumentation block.
    """
    html: str
    base_url: str = ""


@dataclass(frozen=True)
class SandboxPolicy:
    """
    Capability set a displayed memento runs under.
    Anything not listed is denied.
    """
    flags: Tuple[str, ...] = SANDBOX_FLAGS

    def __post_init__(self):
        unknown = [f for f in self.flags if f not in KNOWN_SANDBOX_FLAGS]
        if unknown:
            raise ValueError(f"unknown sandbox flags: {', '.join(unknown)}")
        # Order-preserving dedupe
        object.__setattr__(self, "flags", tuple(dict.fromkeys(self.flags)))

    def allows(self, flag: str) -> bool:
        return flag in self.flags

    @property
    def attribute(self) -> str:
        """Value for the iframe sandbox attribute / CSP sandbox directive."""
        return " ".join(self.flags)


@dataclass
class DisplayHandle:
    """
    Opaque reference to one presented document.
    Owned by the RenderSurface that created it; released exactly once.
    """
    token: str
    url: str
    policy: SandboxPolicy
    base_url: str = ""
    released: bool = field(default=False, compare=False)
