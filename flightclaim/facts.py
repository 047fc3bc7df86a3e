"""
Fact extraction: run the rule tables over normalized text.

Booking reference and passenger name are "first wins" (one per email);
flight numbers, routes and dates accumulate every match. Nothing here
correlates categories; that is the associator's job.
"""

import logging
from typing import List, Optional

from .config import DEFAULT_CONFIG
from .models import Fact
from .rules import RuleContext

logger = logging.getLogger(__name__)

# Facts found in the subject line rather than the body
SUBJECT_POSITION = -1


def _overlaps(start, end, spans):
    return any(start < span_end and span_start < end for span_start, span_end in spans)


def run_rules(rules, text, ctx, offset=0, first_only=False, skip_overlaps=False,
              rescan_rejected=False):
    """Apply rules in order and collect the facts they produce.

    Args:
        rules: Ordered Rule rows of one category
        text: Text to search
        ctx: RuleContext
        offset: Added to every fact position (for window searches)
        first_only: Stop at the first accepted match
        skip_overlaps: Ignore matches overlapping one already accepted
        rescan_rejected: After a rejected match, search again from the start
            of its last group instead of its end

    Returns:
        List of Fact, in rule order then text order
    """
    facts = []
    spans = []

    for rule in rules:
        try:
            pos = 0
            while pos <= len(text):
                match = rule.pattern.search(text, pos)
                if match is None:
                    break
                pos = max(match.end(), match.start() + 1)
                if skip_overlaps and _overlaps(match.start(), match.end(), spans):
                    continue
                value = rule.build(match, ctx)
                if value is None:
                    # "Milan-Bergamo → Istanbul": the rejected pair ends
                    # where the real one starts
                    if rescan_rejected and match.lastindex:
                        pos = max(match.start(match.lastindex), match.start() + 1)
                    continue
                spans.append((match.start(), match.end()))
                facts.append(Fact(
                    category=rule.category,
                    value=value,
                    position=rule.position(match) + offset,
                    raw_match=match.group(0),
                    rule=rule.name,
                ))
                if first_only:
                    return facts
        except Exception as e:
            # A broken rule costs its own facts, never the whole email
            logger.debug(f"Rule {rule.name} failed: {e}")
            continue

    return facts


def extract_route_facts(text, ctx, offset=0):
    """Run the route tiers in order; the first tier with any route wins."""
    rules = ctx.config.rules.route
    tiers = sorted({rule.tier for rule in rules})
    for tier in tiers:
        tier_rules = [rule for rule in rules if rule.tier == tier]
        facts = run_rules(tier_rules, text, ctx, offset=offset, skip_overlaps=True,
                          rescan_rejected=True)
        if facts:
            return sorted(facts, key=lambda f: f.position)
    return []


def _first_booking_ref(text, subject, ctx):
    rules = ctx.config.rules.booking_ref
    tiers = sorted({rule.tier for rule in rules})

    # Keyword-anchored rules before bare tokens, body before subject
    for source, in_subject in ((text, False), (subject, True)):
        if not source:
            continue
        for tier in tiers:
            tier_rules = [rule for rule in rules if rule.tier == tier]
            facts = run_rules(tier_rules, source, ctx, first_only=True)
            if facts:
                fact = facts[0]
                if in_subject:
                    fact = Fact(fact.category, fact.value, SUBJECT_POSITION, fact.raw_match, fact.rule)
                return [fact]
    return []


def _unique_flight_numbers(facts):
    """Keep each canonical flight number once, at its first occurrence."""
    seen = set()
    unique = []
    for fact in sorted(facts, key=lambda f: f.position):
        key = fact.value.canonical
        if key in seen:
            continue
        seen.add(key)
        unique.append(fact)
    return unique


def extract_facts(text, config=None, email_year: Optional[int] = None, subject="") -> List[Fact]:
    """Extract every fact from normalized email text.

    Args:
        text: Normalized text (NormalizedText.text)
        config: ExtractorConfig, defaults to DEFAULT_CONFIG
        email_year: Year of the Date: header, for dates written without one
        subject: Subject line, searched for a booking reference last

    Returns:
        Flat list of Fact ordered by category, then position
    """
    if config is None:
        config = DEFAULT_CONFIG
    ctx = RuleContext(config, email_year)
    rules = config.rules

    if not text:
        return []

    facts = []
    facts.extend(_first_booking_ref(text, subject, ctx))
    facts.extend(_unique_flight_numbers(run_rules(rules.flight_number, text, ctx)))
    facts.extend(extract_route_facts(text, ctx))
    facts.extend(sorted(run_rules(rules.date, text, ctx, skip_overlaps=True),
                        key=lambda f: f.position))
    facts.extend(run_rules(rules.passenger_name, text, ctx, first_only=True))

    logger.debug(f"Extracted {len(facts)} facts: " + ", ".join(
        f"{fact.category.value}={fact.value}" for fact in facts))
    return facts


def facts_of(facts, category):
    return [fact for fact in facts if fact.category == category]
