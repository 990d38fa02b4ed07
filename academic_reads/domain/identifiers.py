"""Paper identifier normalization."""

import re
from typing import Optional

_DOI_RE = re.compile(r"(?P<doi>10\.\d{4,9}/\S+)", re.IGNORECASE)


def normalize_doi(value: Optional[str]) -> Optional[str]:
    """Extract a bare DOI from user input.

    Accepts ``10.x/y``, ``doi:10.x/y`` and ``https://doi.org/10.x/y`` forms.
    Returns ``None`` when no DOI can be found. Case is preserved.
    """
    text = (value or "").strip()
    if not text:
        return None

    lowered = text.lower()
    for marker in ("doi.org/", "doi:"):
        idx = lowered.find(marker)
        if idx >= 0:
            text = text[idx + len(marker):].strip()
            break

    match = _DOI_RE.match(text)
    if not match:
        return None
    return match.group("doi").rstrip(".,;")
