#!/usr/bin/env python

"""
Applies the queries defined in a Python module to a token table and
writes the matches as CSV to stdout.

The module must define QUERIES, a TQuery, a list of them or a dict of
name -> TQuery, e.g.

    from treequery import children, tquery
    QUERIES = {
        'quote': tquery(children(save='source', rel='nsubj'),
                        children(save='quote', rel='ccomp'),
                        select="lemma in ['say', 'tell']", save='verb'),
    }

The token table is a CSV file as written by print_token_table.py, or,
with -t, a text file that is parsed with spacy first.
With -a COLUMN, the token table is written instead, annotated with the
roles found.
"""

import csv
from importlib import import_module
import logging.config
import sys

import plac

from depcore.annotator import SpacyAnnotator
from depcore.dbfutil import file_contents
from depcore.logging import no_datetime_config
from depcore.tokenindex import read_csv
from treequery.apply import annotate, apply_queries


def main(token_file: ("CSV token table, or a text file with -t", "positional", None, str),
         query_module: ("Module defining QUERIES (e.g. myproject.quotes)", "positional", None, str),
         text: ("Input is text, to be parsed with spacy", "flag", "t"),
         no_chain: ("Let queries match tokens matched by earlier queries", "flag", "c"),
         no_check: ("Do not warn about tokens used more than once", "flag", "k"),
         model: ("Spacy model to use with -t", "option", "m", str) = 'en_core_web_sm',
         annotate_column: ("Write the annotated token table, using this column name", "option", "a", str) = None,
         ):

    logging.config.dictConfig(no_datetime_config)
    logger = logging.getLogger('tq_apply')

    if text:
        tokens = SpacyAnnotator(model=model).tokenindex([file_contents(token_file)])
    else:
        tokens = read_csv(token_file)
    logger.info("%d tokens in %d documents", len(tokens), len(tokens.doc_ids()))

    queries = import_module(query_module).QUERIES
    result = apply_queries(tokens, queries, as_chain=not no_chain, check=not no_check)
    logger.info("%d matches", len(result))

    if annotate_column is not None:
        annotated = annotate(tokens, result, annotate_column)
        writer = csv.DictWriter(sys.stdout, fieldnames=list(annotated.columns))
        writer.writeheader()
        for row in annotated:
            writer.writerow(row)
    else:
        writer = csv.DictWriter(sys.stdout, fieldnames=list(result.columns))
        writer.writeheader()
        for row in result:
            writer.writerow(row)


plac.call(main)
