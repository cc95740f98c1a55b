"""Catch a renderer that drifted from the source and correct it."""

from livedom import LiveDocument

doc = LiveDocument("<div><p>hi</p></div>")

# What the renderer reports back: wrapped in <html>/<body>, text changed by a
# script, and an injected element.
observed = (
    '<html><body><div data-livedom-id="1"><p data-livedom-id="2">changed</p>'
    "<aside>ad</aside></div></body></html>"
)

result = doc.reconcile(observed)
print("Root found:", result.root_matched)
print("In sync:", result.in_sync)
for edit in result.edits:
    print(edit.to_dict())
