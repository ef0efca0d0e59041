# checkin/prompts/__init__.py
"""Prompts package - check-in prompt texts and option catalogue"""

from . import checkin_prompts
from . import option_catalog

__all__ = [
    'checkin_prompts',
    'option_catalog'
]
