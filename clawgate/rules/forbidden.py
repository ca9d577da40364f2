"""Deny-list of browser capabilities and the advisory (warning-only) rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..models import IssueCode


@dataclass(frozen=True)
class ForbiddenRule:
    """A denied token, matched as a substring of whitespace-collapsed code."""

    token: str
    category: str

    @property
    def needle(self) -> str:
        return "".join(self.token.split())


@dataclass(frozen=True)
class AdvisoryRule:
    """A token whose presence is reported as a warning only."""

    token: str
    code: IssueCode
    label: str

    @property
    def needle(self) -> str:
        return "".join(self.token.split())


FORBIDDEN_CATEGORIES: Tuple[str, ...] = (
    "storage",
    "network",
    "navigation",
    "window",
    "device",
    "messaging",
    "dynamic_code",
    "module_loading",
)


def _rules(category: str, *tokens: str) -> Tuple[ForbiddenRule, ...]:
    return tuple(ForbiddenRule(token=token, category=category) for token in tokens)


FORBIDDEN_RULES: Tuple[ForbiddenRule, ...] = (
    _rules("storage", "localStorage", "sessionStorage", "indexedDB", "document.cookie")
    + _rules(
        "network",
        "fetch(",
        "XMLHttpRequest",
        "WebSocket",
        "EventSource",
        "sendBeacon",
        "RTCPeerConnection",
    )
    + _rules(
        "navigation",
        "window.location",
        "document.location",
        "location.href",
        "location.assign(",
        "location.replace(",
        "history.pushState",
        "history.replaceState",
    )
    + _rules(
        "window",
        "window.open(",
        "window.opener",
        "window.parent",
        "window.top",
        "window.frames",
    )
    + _rules(
        "device",
        "navigator.geolocation",
        "navigator.mediaDevices",
        "getUserMedia",
        "navigator.clipboard",
        "navigator.bluetooth",
        "navigator.usb",
        "navigator.serial",
        "navigator.vibrate",
    )
    + _rules(
        "messaging",
        "postMessage",
        "BroadcastChannel",
        "MessageChannel",
        "SharedWorker",
        "new Worker(",
        "serviceWorker",
    )
    + _rules(
        "dynamic_code",
        "eval(",
        "new Function(",
        "setTimeout(\"",
        "setTimeout('",
        "setInterval(\"",
        "setInterval('",
        "document.write(",
    )
    + _rules("module_loading", "import(", "require(", "importScripts(")
)

ADVISORY_RULES: Tuple[AdvisoryRule, ...] = (
    AdvisoryRule(token="console.", code=IssueCode.CONSOLE_USAGE, label="console"),
    AdvisoryRule(token="alert(", code=IssueCode.DIALOG_USAGE, label="alert"),
    AdvisoryRule(token="confirm(", code=IssueCode.DIALOG_USAGE, label="confirm"),
    AdvisoryRule(token="prompt(", code=IssueCode.DIALOG_USAGE, label="prompt"),
)

# Published for submitters; never consulted by the scanner.
ALLOWED_APIS: Tuple[str, ...] = (
    "canvas.getContext",
    "requestAnimationFrame",
    "new Audio",
    "new Image",
    "Math.random",
    "Date.now",
    "setTimeout",
    "setInterval",
    "addEventListener",
)

__all__ = [
    "ADVISORY_RULES",
    "ALLOWED_APIS",
    "AdvisoryRule",
    "FORBIDDEN_CATEGORIES",
    "FORBIDDEN_RULES",
    "ForbiddenRule",
]
