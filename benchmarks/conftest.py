"""Benchmark fixtures and configuration."""

from __future__ import annotations

import pytest


@pytest.fixture
def large_document() -> str:
    """Generate a large HTML document (~100KB)."""
    sections = []
    for i in range(200):
        sections.append(f"""  <section id="s{i}" class="section">
    <h2>Section {i}</h2>
    <p>This is paragraph {i} with <b>bold</b>, <em>italic</em> and <code>code</code>.</p>
    <ul>
      <li>List item 1</li>
      <li>List item 2</li>
      <li>List item 3</li>
    </ul>
    <table>
      <tr><th>Column A</th><th>Column B</th></tr>
      <tr><td>Cell {i}</td><td>Data {i}</td></tr>
    </table>
    <p>Here is a <a href="https://example.com/{i}">link</a> and an <img src="{i}.png">.</p>
  </section>""")
    return "<main>\n" + "\n".join(sections) + "\n</main>\n"
