import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from .dbfutil import SimpleClass
from .tokenindex import DOC_ID, TOKEN_ID, PARENT, RELATION, TokenIndex


_logger = logging.getLogger(__name__)


class SpacyAnnotator(SimpleClass):
    """
    Builds token tables from spaCy parses.
    Either pass a ready pipeline as nlp, or a model name (default
    en_core_web_sm), which is loaded the first time it is needed.
    The pipeline must include a dependency parser.
    """

    # Attribute columns copied from each spaCy token, besides the
    # required token table columns.
    ATTRIBUTES = ('token', 'lemma', 'pos', 'tag', 'sentence')

    def __init__(self, **args):
        super().__init__(**args)
        self._default('model', 'en_core_web_sm')
        self._default('nlp', None)

    def _pipeline(self):
        if self.nlp is None:
            import spacy
            _logger.info("Spacy code version is %s", spacy.__version__)
            self.nlp = spacy.load(self.model)
            _logger.info("Spacy model version is %s", self.nlp.meta.get('version'))
        return self.nlp

    def tokens_from_doc(self, doc, doc_id) -> List[Dict[str, Any]]:
        """
        Return one row per spaCy token.
        Token ids are 1-based positions within the doc; a token that is
        its own head is a root and gets parent None.
        """
        # Sentences may or may not be available, depending on which
        # components have run; without them the doc is one sentence.
        sentence_of = {}
        try:
            for si, sentence in enumerate(doc.sents):
                for token in sentence:
                    sentence_of[token.i] = si + 1
        except ValueError:
            pass

        rows = []
        for token in doc:
            if token.head.i == token.i:
                parent = None
            else:
                parent = token.head.i + 1
            rows.append({
                DOC_ID: doc_id,
                TOKEN_ID: token.i + 1,
                PARENT: parent,
                RELATION: token.dep_,
                'token': token.text,
                # Lowercased, so that lemma predicates can use lower case.
                'lemma': token.lemma_.lower() if token.lemma_ else None,
                'pos': token.pos_ or None,
                'tag': token.tag_ or None,
                'sentence': sentence_of.get(token.i, 1),
            })
        return rows

    def tokenindex_from_docs(self, docs: Union[Iterable, Mapping[Any, Any]]) -> TokenIndex:
        """
        Return a TokenIndex for already parsed docs.
        A mapping's keys are used as doc ids; otherwise docs are
        numbered from 1.
        """
        if isinstance(docs, Mapping):
            items = docs.items()
        else:
            items = enumerate(docs, start=1)
        rows = []
        for doc_id, doc in items:
            rows.extend(self.tokens_from_doc(doc, doc_id))
        return TokenIndex(rows, columns=(DOC_ID, TOKEN_ID, PARENT, RELATION) + self.ATTRIBUTES)

    def tokenindex(self, texts: Union[Iterable[str], Mapping[Any, str]]) -> TokenIndex:
        """Parse the texts and return their TokenIndex (see tokenindex_from_docs for doc ids)."""
        nlp = self._pipeline()
        if isinstance(texts, Mapping):
            docs = {doc_id: nlp(text) for doc_id, text in texts.items()}
        else:
            docs = [nlp(text) for text in texts]
        return self.tokenindex_from_docs(docs)
