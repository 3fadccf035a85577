"""
Pytest configuration for hashnote tests.
"""
import sys
import os

import pytest

# Make `import hashnote` work from a plain checkout (src/ on sys.path)
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
_SRC_DIR = os.path.join(_ROOT, 'src')

if _SRC_DIR not in sys.path:
	sys.path.insert(0, _SRC_DIR)


@pytest.fixture(autouse=True)
def _reset_runtime_config():
	from hashnote.config import config
	strict, variant = config.strict_attachment, config.default_variant
	yield
	config.strict_attachment = strict
	config.default_variant = variant
