"""tagsync: keep tagged regions consistent across a document tree.

A tagged region is a block of lines delimited like:
    <!-- @tag install_steps -->
    ...
    <!-- @endtag -->

Every occurrence of a tag name is tracked by content identity. Occurrences
that disagree are reported, and one occurrence's body can be replicated
into all the others, nested tags included.
"""

__version__ = "0.4.0"
