"""
Glossary Term Highlighter

FLOW OVERVIEW
- GlossaryHighlighter(terms)
  • Collects each term's name and aliases, sorted longest first so
    "channel letters" wins over "letters".
  • Compiles one case-insensitive whole-word alternation.
- highlight(text) → [{text, term_id}] segments covering the whole input;
  plain text segments carry term_id None.
- highlight_text(text) builds the highlighter from the active GlossaryTerm rows.
"""

import re
from typing import Dict, List, Optional, Iterable, Tuple


class GlossaryHighlighter:
    """Split text into plain and glossary-term segments."""

    def __init__(self, terms: Iterable[Tuple[str, str, Iterable[str]]]):
        """
        Args:
            terms: (term_id, term, aliases) triples
        """
        self._lookup: Dict[str, str] = {}
        for term_id, term, aliases in terms:
            for phrase in [term, *(aliases or [])]:
                phrase = (phrase or '').strip()
                if phrase:
                    # First definition of a phrase wins
                    self._lookup.setdefault(phrase.lower(), term_id)

        phrases = sorted(self._lookup, key=len, reverse=True)
        self.pattern: Optional[re.Pattern] = None
        if phrases:
            self.pattern = re.compile(
                r'\b(' + '|'.join(re.escape(p) for p in phrases) + r')\b',
                re.IGNORECASE,
            )

    @classmethod
    def from_models(cls, glossary_terms) -> 'GlossaryHighlighter':
        return cls((t.id, t.term, t.aliases or []) for t in glossary_terms)

    def term_id_for(self, phrase: str) -> Optional[str]:
        return self._lookup.get((phrase or '').lower())

    def highlight(self, text: str) -> List[Dict[str, Optional[str]]]:
        text = text or ''
        if self.pattern is None or not text:
            return [{'text': text, 'term_id': None}] if text else []

        segments = []
        position = 0
        for match in self.pattern.finditer(text):
            if match.start() > position:
                segments.append({'text': text[position:match.start()], 'term_id': None})
            segments.append({'text': match.group(0), 'term_id': self.term_id_for(match.group(0))})
            position = match.end()
        if position < len(text):
            segments.append({'text': text[position:], 'term_id': None})
        return segments


def highlight_text(text: str):
    """Highlight against the active glossary in the database"""
    from ..models import GlossaryTerm
    return GlossaryHighlighter.from_models(GlossaryTerm.get_active()).highlight(text)
