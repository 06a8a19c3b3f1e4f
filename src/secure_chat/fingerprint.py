from __future__ import annotations

import base64
import json
import locale
import platform
from datetime import datetime

from tzlocal import get_localzone_name

from secure_chat import __version__


def collect_environment_signals() -> dict[str, str]:
    try:
        language, _ = locale.getlocale()
    except ValueError:
        language = None
    # IANA name such as "Europe/Berlin"; the abbreviation only when none is configured
    timezone = get_localzone_name() or datetime.now().astimezone().tzname() or ""
    return {
        "userAgent": f"secure-chat/{__version__} ({platform.system()} {platform.release()})",
        "language": (language or "en_US").replace("_", "-"),
        "timezone": timezone,
    }


def build_fingerprint(signals: dict[str, str]) -> str:
    """Opaque, non-authenticating descriptor of the client environment."""
    payload = json.dumps(signals, separators=(",", ":"), ensure_ascii=True)
    return base64.b64encode(payload.encode("ascii")).decode("ascii")
