#!/usr/bin/env python

"""
Parses a text file with spacy and prints the resulting token table as
CSV, followed by the dependency tree of each document.
The CSV output can be read back with depcore.tokenindex.read_csv, e.g.
as input for tq_apply.py.
"""

import csv
import logging.config
import sys

import plac

from depcore.annotator import SpacyAnnotator
from depcore.dbfutil import file_contents
from depcore.logging import no_datetime_config
from depcore.tokenindex import tree_string


def main(target: ("File containing text to process", "positional", None, str),
         lines: ("Treat each non-empty line as a separate document", "flag", "l"),
         no_trees: ("Only print the table", "flag", "n"),
         model: ("Spacy model to use", "option", "m", str) = 'en_core_web_sm',
         ):

    logging.config.dictConfig(no_datetime_config)

    text = file_contents(target)
    if lines:
        texts = [line for line in text.splitlines() if line.strip()]
    else:
        texts = [text]

    tokens = SpacyAnnotator(model=model).tokenindex(texts)

    writer = csv.DictWriter(sys.stdout, fieldnames=list(tokens.columns))
    writer.writeheader()
    for row in tokens:
        writer.writerow(row)

    if not no_trees:
        for doc_id in tokens.doc_ids():
            print()
            print("DOCUMENT:", doc_id)
            print(tree_string(tokens, doc_id))


plac.call(main)
