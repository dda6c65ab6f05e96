import unittest

from depcore.dbfutil import GenericException
from treequery.apply import annotate, apply_queries
from treequery.find import find_nodes
from treequery.pattern import KEY, QUERY, children, tquery
from treequery.test.treequery_test import SAY_VERBS, TreeQueryTest


class TestApplyQueries(TreeQueryTest):

    def queries(self):
        return {
            'say': tquery(children(save='source', rel='su'),
                          select="lemma in SAY_VERBS", env={'SAY_VERBS': SAY_VERBS}, save='verb'),
            'verb': tquery(children(save='source', rel='su'), select="pos == 'VERB'", save='verb'),
        }

    def test_named(self):
        print("test_named")
        result = apply_queries(self.reports(), self.queries())
        self.assertEqual(list(result.columns), ['doc_id', KEY, 'verb', 'source', QUERY])
        self.assertEqual(self.values(result, 'doc_id', 'verb', 'source', QUERY),
                         [(1, 2, 1, 'say'), (1, 5, 4, 'say'), (2, 2, 1, 'say'), (1, 7, 6, 'verb')])

    def test_not_chained(self):
        print("test_not_chained")
        result = apply_queries(self.reports(), self.queries(), as_chain=False, check=False)
        self.assertEqual(len(result), 7)
        self.assertEqual(result.column(QUERY).count('verb'), 4)

    def test_labels(self):
        print("test_labels")
        queries = [tquery(select="lemma == 'say'", label='first'),
                   [tquery(select="pos == 'VERB'")]]
        result = apply_queries(self.reports(), *queries)
        self.assertEqual(self.values(result, 'doc_id', KEY, QUERY),
                         [(1, 2, 'first'), (1, 2, ''), (1, 5, ''), (1, 7, ''), (2, 2, '')])

    def test_label_chain(self):
        print("test_label_chain")
        result = apply_queries(self.reports(),
                               tquery(select="lemma == 'say'", save='verb').with_label('first'),
                               tquery(select="pos == 'VERB'", save='verb').with_label('second'))
        self.assertEqual(self.values(result, 'verb', QUERY),
                         [(2, 'first'), (5, 'second'), (7, 'second'), (2, 'second')])

    def test_block(self):
        print("test_block")
        result = apply_queries(self.reports(), self.queries(), block=[(2, 1)])
        self.assertEqual(self.values(result, 'doc_id', 'verb', QUERY), [(1, 2, 'say'), (1, 5, 'say'), (1, 7, 'verb')])

    def test_empty(self):
        print("test_empty")
        result = apply_queries(self.reports(), tquery(select="lemma == 'sing'"))
        self.assertEqual(len(result), 0)

    def test_bad_query(self):
        print("test_bad_query")
        with self.assertRaises(GenericException):
            apply_queries(self.reports(), children(save='x'))
        with self.assertRaises(GenericException):
            apply_queries(self.reports(), {'x': "lemma == 'say'"})


class TestAnnotate(TreeQueryTest):

    def quotes(self, tokens):
        return find_nodes(tokens, children(save='source', rel='su'), children(save='quote', rel='vc'),
                          select="lemma == 'say'", save='verb')

    def test_annotate(self):
        print("test_annotate")
        tokens = self.reports()
        annotated = annotate(tokens, self.quotes(tokens), 'quote_role')
        self.assertNotIn('quote_role', tokens.columns)
        values = [(row['token_id'], row['quote_role'], row['quote_role_id'], row['quote_role_fill'])
                  for row in annotated if row['doc_id'] == 1]
        self.assertEqual(values, [(1, 'source', '1.2', 0),
                                  (2, 'verb', '1.2', 0),
                                  (3, 'quote', '1.2', 0),
                                  (4, 'quote', '1.2', 2),
                                  (5, 'quote', '1.2', 1),
                                  (6, 'quote', '1.2', 3),
                                  (7, 'quote', '1.2', 2)])
        self.assertEqual([row['quote_role'] for row in annotated if row['doc_id'] == 2], [None] * 4)

    def test_use(self):
        print("test_use")
        tokens = self.reports()
        annotated = annotate(tokens, self.quotes(tokens), 'quote_role', use=['quote'])
        self.assertEqual([annotated.get(1, i)['quote_role'] for i in range(1, 8)],
                         [None, None, 'quote', 'quote', 'quote', 'quote', 'quote'])

    def test_no_fill(self):
        print("test_no_fill")
        tokens = self.reports()
        annotated = annotate(tokens, self.quotes(tokens), 'quote_role', fill=False)
        self.assertEqual([annotated.get(1, i)['quote_role'] for i in range(1, 8)],
                         ['source', 'verb', 'quote', None, None, None, None])
        self.assertIsNone(annotated.get(1, 5)['quote_role_fill'])

    def test_first_row_wins(self):
        print("test_first_row_wins")
        tokens = self.reports()
        nodes = find_nodes(tokens, children(save='child'), ids=[(2, 2)], save='verb')
        annotated = annotate(tokens, nodes, 'role', fill=False)
        self.assertEqual([annotated.get(2, i)['role'] for i in range(1, 5)], ['child', 'verb', 'child', 'child'])


if __name__ == '__main__':
    unittest.main()
