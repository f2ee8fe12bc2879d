"""mdpublish: publish Markdown documents to Confluence pages.

The document is run through a text-transformation pipeline (metadata,
includes, macros, relative links, attachments) and then synchronized to a
single Confluence page under optimistic-concurrency control.
"""

__version__ = "0.1.0"
