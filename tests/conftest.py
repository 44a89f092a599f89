import pytest

from marc_evaluator.core.field_comparator import SelectorConfig
from marc_evaluator.core.record_parser    import RecordParser

REFERENCE_MNEMONIC = """\
=LDR  00000nam  2200000   4500
=001  ocm12345678
=008  040115s2004||||nyu||||||||||||||||eng|d
=020  \\\\$a978-0-7432-7356-5
=100  1\\$aFitzgerald, F. Scott,$d1896-1940.
=245  14$aThe Great Gatsby /$cF. Scott Fitzgerald.
=260  \\\\$aNew York :$bScribner,$c2004.
=300  \\\\$a180 p. ;$c21 cm.
=650  \\0$aRich people$zNew York (State)$vFiction.
=650  \\0$aLong Island (N.Y.)$vFiction.
"""

CANDIDATE_MNEMONIC = """\
Here is the MARC record you asked for:

```
=LDR  00000nam  2200000   4500
=020  \\\\$a9780743273565
=100  1\\$aFitzgerald, F. Scott.
=245  10$aGreat Gatsby /$cF. Scott Fitzgerald.
=260  \\\\$aNew York :$bScribner,$c2004.
=500  \\\\$aFirst published 1925.
=650  \\0$aRich people$vFiction.
```
"""

REFERENCE_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<record xmlns="http://www.loc.gov/MARC21/slim">
  <leader>00000nam a2200000 a 4500</leader>
  <controlfield tag="001">ocm12345678</controlfield>
  <datafield tag="245" ind1="1" ind2="4"><subfield code="a">The Great Gatsby /</subfield><subfield code="c">F. Scott Fitzgerald.</subfield></datafield>
  <datafield tag="100" ind1="1" ind2=" "><subfield code="a">Fitzgerald, F. Scott,</subfield><subfield code="d">1896-1940.</subfield></datafield>
</record>
"""

@pytest.fixture
def reference_text() -> str:
    return REFERENCE_MNEMONIC

@pytest.fixture
def candidate_text() -> str:
    return CANDIDATE_MNEMONIC

@pytest.fixture
def reference_xml() -> str:
    return REFERENCE_XML

@pytest.fixture
def parser() -> RecordParser:
    return RecordParser()

@pytest.fixture
def full_config() -> SelectorConfig:
    return SelectorConfig.from_profile('full')

@pytest.fixture
def title_author_config() -> SelectorConfig:
    """Two equally weighted selectors."""
    return SelectorConfig.from_dicts([
        {'name': 'title',  'tags': ['245'], 'codes': ['a'], 'weight': 0.3},
        {'name': 'author', 'tags': ['100'], 'codes': ['a'], 'weight': 0.3}
    ], name = 'title_author')

@pytest.fixture
def make_record(parser):
    """Parses mnemonic field lines written under a default leader."""
    def build(*lines: str):
        return parser.parse('\n'.join(('=LDR  00000nam  2200000   4500',) + lines) + '\n')
    return build
