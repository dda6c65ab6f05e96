import unittest

from treequery.blocks import BlockSet, InputShapeError, block_ids
from treequery.pattern import KEY, QUERY
from treequery.result import ResultBatch
from treequery.test.treequery_test import TreeQueryTest


class TestBlockIds(TreeQueryTest):

    def test_result(self):
        print("test_result")
        batch = ResultBatch([{'doc_id': 1, KEY: 1, 'source': 2, 'quote': 4}])
        block = block_ids(None, batch)
        self.assertIsInstance(block, BlockSet)
        self.assertEqual(block, {(1, 2), (1, 4)})

    def test_result_absent_roles(self):
        print("test_result_absent_roles")
        batch = ResultBatch([{'doc_id': 1, KEY: 1, 'verb': 1},
                             {'doc_id': 2, KEY: 5, 'source': 6, QUERY: 'q'}])
        self.assertEqual(block_ids(batch), {(1, 1), (2, 6)})

    def test_none(self):
        print("test_none")
        self.assertEqual(block_ids(), set())
        self.assertEqual(block_ids(None, None), set())

    def test_pairs(self):
        print("test_pairs")
        self.assertEqual(block_ids([(1, 2), [1, 3], (1, 2)]), {(1, 2), (1, 3)})
        self.assertEqual(block_ids({(2, 'a')}), {(2, 'a')})

    def test_rows(self):
        print("test_rows")
        rows = [{'doc_id': 1, 'token_id': 2, 'lemma': 'he'}, {'doc_id': 1, 'token_id': 3}]
        self.assertEqual(block_ids(rows), {(1, 2), (1, 3)})
        self.assertEqual(block_ids(self.said()), {(1, 1), (1, 2), (1, 3), (1, 4)})

    def test_columns(self):
        print("test_columns")
        self.assertEqual(block_ids({'doc_id': [1, 1], 'token_id': [2, 4]}), {(1, 2), (1, 4)})

    def test_merge(self):
        print("test_merge")
        batch = ResultBatch([{'doc_id': 1, KEY: 1, 'source': 2}])
        self.assertEqual(block_ids([(2, 1)], batch, block_ids([(3, 3)])), {(2, 1), (1, 2), (3, 3)})
        self.assertEqual(block_ids([batch, (2, 2)]), {(1, 2), (2, 2)})

    def test_bad_input(self):
        print("test_bad_input")
        for bad in ("1,2", 12, {'doc_id': [1]}, {'doc_id': [1, 2], 'token_id': [1]},
                    [(1, 2, 3)], [{'doc_id': 1}], [7]):
            with self.assertRaises(InputShapeError):
                block_ids(bad)


if __name__ == '__main__':
    unittest.main()
