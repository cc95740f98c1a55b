"""Follow a typing session: reparse only what changed, keep every id."""

from livedom import EditDelta, LiveDocument, Position, edits_to_json, profiled_updates

source = "<ul>\n  <li>First item</li>\n  <li>Second item</li>\n</ul>"
doc = LiveDocument(source)
print(doc.instrumented_html())
print()

with profiled_updates() as metrics:
    # User types " here" after "First item"
    result = doc.apply_delta(EditDelta.insert(Position(1, 16), " here"))
    print("Incremental:", result.incremental)
    print("Edits:", edits_to_json(result.edits))

    # User pastes a new list item, which contains markup: full reparse
    result = doc.apply_delta(EditDelta.insert(Position(2, 22), "\n  <li>Third item</li>"))
    print("Incremental:", result.incremental)
    print("Edits:", edits_to_json(result.edits, indent=2))

print()
print(doc.text)
print("Ids in use:", [node.tag_id for node in doc.snapshot if node.is_element()])
print(metrics.summary())
