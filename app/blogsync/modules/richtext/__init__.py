"""
Rich text module.

Scope:
- Markdown -> rich text document (block parser + inline span tokenizer)
- HTML -> rich text fallback (plain paragraph)
- Rich text -> HTML rendering (preview)

Documents use the Contentful rich text JSON shape so they can be stored in the
CMS unchanged.
"""
