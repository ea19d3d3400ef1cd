"""
Tier-coloured sentence highlighting.

Fragments returned by the detector are opaque data: they are matched
literally, and each tier may only claim characters no higher tier (and no
earlier fragment) already claimed. Claimed ranges are tracked as intervals and
the markup is produced in a single final pass, so markers never nest.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from authenticity.utils.text_processing import LINE_BREAK, is_blank, prepare_for_display

logger = logging.getLogger(__name__)

TIER_PRIORITY = ("high", "medium")

# Entities and <br /> markers must never be split by a match.
_ATOMIC_RE = re.compile(r"&(?:#\d+|#x[0-9a-fA-F]+|[a-zA-Z]+);|" + re.escape(LINE_BREAK))

Range = Tuple[int, int]
TierFragments = Union[Mapping[str, Sequence[str]], Sequence[Tuple[str, Sequence[str]]], None]


@dataclass(frozen=True)
class Span:
    start: int
    end: int
    tier: str


def find_all(
    haystack: str,
    fragment: str,
    start: int = 0,
    end: Optional[int] = None,
    reject: Optional[Callable[[int, int], bool]] = None,
) -> List[Range]:
    """
    Returns every non-overlapping [start, end) range where `fragment` occurs
    literally in haystack[start:end], leftmost first.

    A match for which `reject(start, end)` is true is not returned, and the
    search resumes one character after its start so an overlapping
    occurrence is still found.

    A blank fragment matches nothing. A fragment that cannot be turned into a
    pattern is logged and treated as a miss.
    """
    if not isinstance(fragment, str) or not fragment.strip():
        return []
    if end is None:
        end = len(haystack)
    try:
        pattern = re.compile(re.escape(fragment))
        ranges = []
        pos = start
        while pos < end:
            m = pattern.search(haystack, pos, end)
            if m is None:
                break
            if reject is not None and reject(*m.span()):
                pos = m.start() + 1
                continue
            ranges.append(m.span())
            pos = m.end()
        return ranges
    except (re.error, TypeError, ValueError) as e:
        logger.warning("Skipping unmatchable fragment %r: %s", fragment[:80], e)
        return []


def atomic_ranges(text: str) -> List[Range]:
    return [m.span() for m in _ATOMIC_RE.finditer(text)]


def _splits_atomic(start: int, end: int, atomic: Sequence[Range]) -> bool:
    for a_start, a_end in atomic:
        if a_start >= end:
            break
        if a_end <= start:
            continue
        # Overlaps; fine only if the token sits wholly inside the match
        if not (start <= a_start and a_end <= end):
            return True
    return False


def _gaps(claimed: List[Span], length: int) -> List[Range]:
    gaps = []
    cursor = 0
    for span in claimed:
        if span.start > cursor:
            gaps.append((cursor, span.start))
        cursor = max(cursor, span.end)
    if cursor < length:
        gaps.append((cursor, length))
    return gaps


def claim_spans(
    haystack: str,
    tiers: Iterable[Tuple[str, Sequence[str]]],
    atomic: Sequence[Range] = (),
) -> List[Span]:
    """
    Assigns character ranges of `haystack` to tiers, highest priority first.

    Each fragment is searched only inside the gaps left unclaimed so far, so a
    fragment overlapping an already claimed span is skipped there. Returns the
    claimed spans sorted by position.
    """
    claimed: List[Span] = []

    def splits_atomic(start: int, end: int) -> bool:
        return _splits_atomic(start, end, atomic)

    for tier, fragments in tiers:
        for fragment in fragments:
            found = []
            for gap_start, gap_end in _gaps(claimed, len(haystack)):
                for start, end in find_all(haystack, fragment, gap_start, gap_end, reject=splits_atomic):
                    found.append(Span(start, end, tier))
            if found:
                claimed = sorted(claimed + found, key=lambda s: s.start)
    return claimed


def _marker(tier: str, content: str) -> str:
    return f'<mark class="ai-highlight ai-tier-{tier}" data-tier="{tier}">{content}</mark>'


def annotate(sanitized_text: str, tiers: Iterable[Tuple[str, Sequence[str]]]) -> str:
    """
    Wraps every claimed range of an already sanitized text in a tier marker.
    Fragments must have been prepared the same way as the text.
    """
    spans = claim_spans(sanitized_text, tiers, atomic=atomic_ranges(sanitized_text))
    parts = []
    cursor = 0
    for span in spans:
        parts.append(sanitized_text[cursor:span.start])
        parts.append(_marker(span.tier, sanitized_text[span.start:span.end]))
        cursor = span.end
    parts.append(sanitized_text[cursor:])
    return "".join(parts)


def _tier_name(tier) -> str:
    # Tier names end up in class attributes
    return re.sub(r"[^a-z0-9_-]", "", str(tier).lower()) or "unknown"


def order_tiers(tiered_fragments: TierFragments) -> List[Tuple[str, List[str]]]:
    """
    Normalizes a mapping or a sequence of (tier, fragments) pairs into a list
    ordered by TIER_PRIORITY, unknown tiers last in the order given.
    Non-string fragments are dropped.
    """
    if not tiered_fragments:
        return []
    items = tiered_fragments.items() if isinstance(tiered_fragments, Mapping) else tiered_fragments

    tiers = []
    for tier, fragments in items:
        kept = []
        for fragment in fragments or []:
            if isinstance(fragment, str):
                kept.append(fragment)
            else:
                logger.debug("Dropping non-string fragment in tier %s: %r", tier, fragment)
        tiers.append((_tier_name(tier), kept))

    def rank(item):
        name = item[0]
        return TIER_PRIORITY.index(name) if name in TIER_PRIORITY else len(TIER_PRIORITY)

    # sorted() is stable, so unknown tiers keep their relative order
    return sorted(tiers, key=rank)


def render_highlight(original_text: str, tiered_fragments: TierFragments = None) -> str:
    """
    Produces display-safe markup for `original_text` with detected fragments
    wrapped per tier. With no fragments this is just sanitize + line breaks.
    """
    text = prepare_for_display(original_text)
    tiers = [
        (tier, [prepare_for_display(f) for f in fragments if not is_blank(f)])
        for tier, fragments in order_tiers(tiered_fragments)
    ]
    return annotate(text, tiers)
