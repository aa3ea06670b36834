"""Homograph and typosquatting heuristics for hostnames."""

from __future__ import annotations

from phish_link_guard.config.reference import ReferenceData

_MIN_TARGET_LENGTH = 4
_MIN_FUZZY_TARGET_LENGTH = 5
_MAX_TYPO_DISTANCE = 2


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def detect_scripts(text: str) -> set[str]:
    """Scripts present in text, by codepoint range. Digits and punctuation count as none."""

    scripts: set[str] = set()
    for char in text:
        code = ord(char)
        if 0x41 <= code <= 0x5A or 0x61 <= code <= 0x7A:
            scripts.add("latin")
        elif 0x0400 <= code <= 0x04FF:
            scripts.add("cyrillic")
        elif 0x0370 <= code <= 0x03FF:
            scripts.add("greek")
        elif 0x0530 <= code <= 0x058F:
            scripts.add("armenian")
    return scripts


def decode_idna_host(host: str) -> str:
    """Decode punycode labels so lookalike checks see the rendered characters."""

    labels: list[str] = []
    for label in (host or "").split("."):
        if label.startswith("xn--"):
            try:
                label = label.encode("ascii").decode("idna")
            except UnicodeError:
                pass
        labels.append(label)
    return ".".join(labels)


def has_confusable(host: str, reference: ReferenceData) -> bool:
    table = reference.confusable_chars
    return any(char in table for char in host)


def is_homograph(host: str, reference: ReferenceData) -> bool:
    rendered = decode_idna_host(host)
    return has_confusable(rendered, reference) or len(detect_scripts(rendered)) > 1


def confusable_skeleton(host: str, reference: ReferenceData) -> str:
    """Rendered host with each confusable replaced by the Latin letter it imitates."""

    lookup = {char: letter for letter, chars in reference.confusables.items() for char in chars}
    return "".join(lookup.get(char, char.lower()) for char in decode_idna_host(host))


def leet_variants(target: str, reference: ReferenceData) -> list[str]:
    variants: list[str] = []
    for char, substitutes in reference.leet_substitutions.items():
        if char not in target:
            continue
        for substitute in substitutes:
            variants.append(target.replace(char, substitute))
    return list(dict.fromkeys(variant for variant in variants if variant != target))


def _is_subsequence(short: str, long: str) -> bool:
    chars = iter(long)
    return all(char in chars for char in short)


def _is_insertion_or_omission(label: str, target: str) -> bool:
    # Substitutions are left to the leet table: "chess" is not a typo of "chase".
    if len(label) > len(target):
        return _is_subsequence(target, label)
    return len(label) == len(target) - 1 and _is_subsequence(label, target)


def _is_own_domain(domain: str, target: str, reference: ReferenceData) -> bool:
    return any(domain == f"{target}.{tld}" for tld in reference.typosquatting_tlds)


def find_typosquat_target(host: str, domain: str, reference: ReferenceData) -> str | None:
    """Return the brand the host appears to imitate, if any."""

    host = (host or "").lower()
    domain = (domain or "").lower()
    label = domain.split(".")[0]
    known_brand = label in reference.typosquatting_targets
    rendered = decode_idna_host(host)
    skeleton = confusable_skeleton(host, reference)
    for target in reference.typosquatting_targets:
        if len(target) < _MIN_TARGET_LENGTH:
            continue
        if target in skeleton and target not in rendered:
            return target
        contained = target in host
        near = (
            not contained
            and not known_brand
            and len(target) >= _MIN_FUZZY_TARGET_LENGTH
            and levenshtein(label, target) <= _MAX_TYPO_DISTANCE
            and _is_insertion_or_omission(label, target)
        )
        if (contained or near) and not _is_own_domain(domain, target, reference):
            for tld in reference.typosquatting_tlds:
                distance = levenshtein(domain, f"{target}.{tld}")
                if 0 < distance <= _MAX_TYPO_DISTANCE:
                    return target
        if any(variant in host for variant in leet_variants(target, reference)):
            return target
    return None


def is_typosquatting(host: str, domain: str, reference: ReferenceData) -> bool:
    return find_typosquat_target(host, domain, reference) is not None
