"""
Execution checklist labels for call scoring.

Scoring runs record the checklist as a mapping of label -> bool, but the
labels drift between runs ("ask_about_work", "Ask About Work",
"Ask about work!"). Everything is aggregated under a canonical key and
shown with the label agents actually see most often.
"""

import re
from collections import Counter
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from calculator.decimal_math import round_int

_SEPARATORS_RE = re.compile(r"[_\-]+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

RUBRIC_LABELS = {
    "hwf_framework": "HWF Framework",
    "ask_about_work": "Ask About Work",
    "explain_coverage": "Explain Coverage",
    "deductible_value": "Deductible Value",
    "advisor_frame": "Advisor Frame",
    "assumptive_close": "Assumptive Close",
    "ask_for_sale": "Ask for Sale",
    "set_follow_up": "Set Follow-up",
}


def canonicalize(label: str) -> str:
    """
    Canonical key for a checklist label.

    Examples:
        >>> canonicalize("Ask About Work!")
        'ask about work'
        >>> canonicalize("set_follow_up")
        'set follow up'
        >>> canonicalize("  “Advisor”  frame ")
        'advisor frame'
    """
    text = str(label).casefold()
    text = _SEPARATORS_RE.sub(" ", text)
    text = _PUNCTUATION_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


BUILTIN_LABELS = {canonicalize(key): label for key, label in RUBRIC_LABELS.items()}


class ChecklistLabelIndex:
    """
    Frequency of every surface form seen for each canonical key.

    Surface forms are kept in first-seen order so that ties resolve to the
    earliest one.
    """

    def __init__(self, labels: Optional[Iterable[str]] = None):
        self._forms: Dict[str, Counter] = {}
        for label in labels or ():
            self.observe(label)

    def observe(self, label: str) -> str:
        key = canonicalize(label)
        if key:
            self._forms.setdefault(key, Counter())[str(label).strip()] += 1
        return key

    def keys(self) -> List[str]:
        return list(self._forms)

    def display_label(self, key: str) -> str:
        """
        Label shown for a canonical key: the most frequent surface form seen.

        Built-in rubric labels are only used for keys never observed.
        """
        forms = self._forms.get(key)
        if forms:
            # max() keeps the first of equal counts
            return max(forms.items(), key=lambda item: item[1])[0]
        return BUILTIN_LABELS.get(key, key)


@dataclass
class ChecklistRate:
    key: str
    label: str
    hits: int
    calls: int
    rate: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def aggregate_checklist_rates(
    checklists: Iterable[Optional[Mapping[str, Any]]],
    index: Optional[ChecklistLabelIndex] = None,
) -> List[ChecklistRate]:
    """
    Hit rate per canonical checklist item.

    ``checklists`` holds one entry per scored call; calls without a checklist
    (None or not a mapping) are skipped and do not count toward the
    denominator. Non-boolean values are ignored.
    """
    index = index or ChecklistLabelIndex()
    hits: Dict[str, int] = {}
    calls_with_checklist = 0

    for checklist in checklists:
        if not isinstance(checklist, Mapping):
            continue
        calls_with_checklist += 1
        seen_this_call = set()
        for label, value in checklist.items():
            if not isinstance(value, bool):
                continue
            key = index.observe(label)
            if not key:
                continue
            hits.setdefault(key, 0)
            # two spellings of one item on the same call count once
            if value and key not in seen_this_call:
                hits[key] += 1
                seen_this_call.add(key)

    if calls_with_checklist == 0:
        return []

    rates = [
        ChecklistRate(
            key=key,
            label=index.display_label(key),
            hits=count,
            calls=calls_with_checklist,
            rate=round_int(100 * count / calls_with_checklist),
        )
        for key, count in hits.items()
    ]
    rates.sort(key=lambda r: r.rate, reverse=True)
    return rates
