"""Give every element a stable id the renderer can see."""

from livedom import LiveDocument

doc = LiveDocument("<div>\n  <p>Hello <b>World</b></p>\n</div>")
print(doc.instrumented_html())
