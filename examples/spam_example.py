"""Demonstrates building, querying, and persisting a classification tree with inctree.

Emails are described by the percentage of their words that match a few
keywords. The tree is built from labelled examples one at a time; every time
an email lands on a leaf with a different label, that leaf is split on the
keyword whose percentages differ most.

Key concepts shown here:

- ``vectors_from_frame``: turns the numeric columns of a polars DataFrame into
  feature vectors under a single category (here ``wordPercent``).
- ``enable_logging(level="SPLIT")``: surfaces every leaf split made during
  construction, with the chosen feature and threshold as structured extras.
- ``dumps``/``loads``: the pre-order text format, one split or label per line.
"""

import polars as pl

from inctree import ClassificationTree, MappingFeatureVector, enable_logging, vectors_from_frame

emails = pl.DataFrame({
    "subject": ["Lunch on Friday?", "You are a WINNER", "Minutes from standup", "Free prize inside", "Claim now"],
    "free": [0.0, 0.04, 0.0, 0.05, 0.01],
    "meeting": [0.02, 0.0, 0.03, 0.0, 0.0],
    "winner": [0.0, 0.06, 0.0, 0.01, 0.0],
    "label": ["ham", "spam", "ham", "spam", "spam"],
})

with enable_logging(level="SPLIT", log_format="short"):
    items, labels = vectors_from_frame(emails, label_column="label", category="wordPercent")
    tree = ClassificationTree.from_examples(items, labels)

    print(f"\n{tree!r}")
    print(f"Training accuracy: {tree.accuracy(items, labels)}\n")

    # Classify a new email
    new_email = MappingFeatureVector.from_flat({"free": 0.03, "meeting": 0.0, "winner": 0.02}, category="wordPercent")
    print(f"New email is {tree.classify(new_email)!r}\n")

    # Save and reload
    text = tree.dumps()
    print(text)
    reloaded = ClassificationTree.loads(text)
    print(f"Reloaded tree equals original: {reloaded == tree}")
