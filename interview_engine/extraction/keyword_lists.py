"""Curated keyword lists for technical-answer signal extraction.

These lists are intentionally broad.  False positives are acceptable
because the heuristic scorer only uses them as coarse signals, and the
remote scorer is the primary path whenever it is available.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════════════════
# CODE INDICATORS
# Tokens that suggest the answer contains a code snippet.
# Matched as substrings against the lower-cased answer.
# ═══════════════════════════════════════════════════════════════════════════
CODE_INDICATORS: tuple[str, ...] = (
    "function", "const ", "let ", "var ", "=>", "import", "export",
    "class ", "return", "if (", "for (", "while (", "console.log",
    "def ", "self.", "print(", "```", "();", "{}", "async ", "await ",
)

# ═══════════════════════════════════════════════════════════════════════════
# EXAMPLE PHRASES
# Phrases that introduce a concrete example or scenario.
# ═══════════════════════════════════════════════════════════════════════════
EXAMPLE_PHRASES: tuple[str, ...] = (
    "for example", "for instance", "such as", "like when",
    "in practice", "real world", "scenario", "use case",
    "e.g.", "imagine", "in my last project", "at my previous",
)

_JAVASCRIPT: tuple[str, ...] = (
    "closure", "promise", "async", "await", "scope", "hoisting",
    "prototype", "event loop", "callback", "es6",
)

# ═══════════════════════════════════════════════════════════════════════════
# DOMAIN KEYWORDS BY CATEGORY
# A question's category is matched by prefix, so "react-hooks" uses the
# "react" list.  Unknown categories fall back to "general".
# ═══════════════════════════════════════════════════════════════════════════
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "react": (
        "component", "state", "props", "hook", "effect", "context",
        "virtual dom", "jsx", "reconciliation", "fiber",
    ),
    "javascript": _JAVASCRIPT,
    "js": _JAVASCRIPT,
    "node": (
        "event loop", "non-blocking", "middleware", "express", "module",
        "require", "import", "stream", "buffer", "cluster",
    ),
    "html": (
        "semantic", "accessibility", "box model", "flexbox", "grid",
        "selector", "specificity", "responsive", "media query", "dom",
    ),
    "css": (
        "box model", "flexbox", "grid", "selector", "specificity",
        "responsive", "media query", "cascade", "layout", "margin",
    ),
    "api": (
        "rest", "endpoint", "http", "status code", "json", "resource",
        "idempotent", "pagination", "versioning", "authentication",
    ),
    "state": (
        "store", "reducer", "context", "redux", "action", "immutable",
        "selector", "global state", "prop drilling", "subscription",
    ),
    "system": (
        "scalability", "load balancer", "cache", "database", "sharding",
        "replication", "latency", "throughput", "queue", "consistency",
    ),
    "architecture": (
        "microservice", "monolith", "service", "coupling", "scalability",
        "deployment", "interface", "layer", "fault tolerance", "trade-off",
    ),
    "scalability": (
        "horizontal", "vertical", "load balancer", "cache", "sharding",
        "replication", "partition", "throughput", "bottleneck", "cdn",
    ),
    "general": (
        "performance", "optimization", "scalability", "architecture",
        "database", "api", "rest", "graphql", "authentication",
    ),
}

# ═══════════════════════════════════════════════════════════════════════════
# DEPTH INDICATORS BY DIFFICULTY
# Words that signal reasoning at the level the tier expects.
# ═══════════════════════════════════════════════════════════════════════════
DEPTH_INDICATORS: dict[str, tuple[str, ...]] = {
    "easy": ("because", "reason", "why", "how"),
    "medium": ("compare", "difference", "advantage", "disadvantage", "trade-off"),
    "hard": ("architecture", "scalability", "performance", "optimization", "security"),
}

# Words ignored when extracting keywords from the question text itself.
STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "what", "when", "how", "would", "your", "you",
    "this", "that", "them", "they", "does", "explain", "describe",
    "discuss", "which", "between", "their", "there", "about",
})


def keywords_for(category: str) -> tuple[str, ...]:
    """Return the keyword list for a question category (prefix match)."""
    normalized = (category or "general").lower()
    if normalized in CATEGORY_KEYWORDS:
        return CATEGORY_KEYWORDS[normalized]
    for key, words in CATEGORY_KEYWORDS.items():
        if normalized.startswith(key):
            return words
    return CATEGORY_KEYWORDS["general"]
