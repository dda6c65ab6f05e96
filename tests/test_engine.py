import unittest

from treequery.engine import put_column, rec_find, select_tokens, strip_suffixes
from treequery.pattern import MATCH_ID, children, parents
from treequery.test.treequery_test import TreeQueryTest


class TestColumns(unittest.TestCase):

    def test_put_column(self):
        print("test_put_column")
        row = {'doc_id': 1}
        put_column(row, 'x', 1)
        self.assertEqual(row, {'doc_id': 1, 'x': 1})
        put_column(row, 'x', 2)
        self.assertEqual(row, {'doc_id': 1, 'x.x': 1, 'x.y': 2})
        put_column(row, 'x.x', 3)
        self.assertEqual(row, {'doc_id': 1, 'x.y': 2, 'x.x.x': 1, 'x.x.y': 3})

    def test_strip_suffixes(self):
        print("test_strip_suffixes")
        self.assertEqual(strip_suffixes({'doc_id': 1, 'x.x': 1, 'x.y': 2}), {'doc_id': 1, 'x': 2})
        self.assertEqual(strip_suffixes({'a.b': 1, 'source': 2}), {'a.b': 1, 'source': 2})


class TestRecFind(TreeQueryTest):

    def test_select_tokens(self):
        print("test_select_tokens")
        tokens = self.reports()
        selection = select_tokens(tokens, [(1, 2), (1, 5)], children(select="pos == 'PROPN'"))
        self.assertEqual(selection, [(1, 2, 1), (1, 5, 4)])
        selection = select_tokens(tokens, [(1, 6)], parents(depth=None, select="lemma == LEMMA"),
                                  env={'LEMMA': 'say'})
        self.assertEqual(selection, [(1, 6, 2)])

    def test_rows(self):
        print("test_rows")
        rows = rec_find(self.said(), [(1, 1)], [children(save='source', rel='su'),
                                                children(children(save='quote'), rel='vc')])
        self.assertEqual(rows, [{'doc_id': 1, MATCH_ID: 1, 'source': 2, 'quote': 4}])

    def test_and(self):
        print("test_and")
        tokens = self.reports()
        anchors = [(1, 2), (1, 5), (2, 2)]
        self.assertEqual(rec_find(tokens, anchors, [children(rel='su'), children(rel='obj1')]),
                         [{'doc_id': 2, MATCH_ID: 2}])
        self.assertEqual(rec_find(tokens, anchors, [children(rel='su'), children(rel='punct')]), [])

    def test_negation(self):
        print("test_negation")
        rows = rec_find(self.reports(), [(1, 2), (1, 5), (2, 2)], [children(save='obj', rel='obj1', negate=True)])
        self.assertEqual(rows, [{'doc_id': 1, MATCH_ID: 2}, {'doc_id': 1, MATCH_ID: 5}])


if __name__ == '__main__':
    unittest.main()
