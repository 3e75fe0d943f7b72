# -*- coding: utf-8 -*-
"""modelgate: provider configuration broker for an agent runtime."""

__version__ = "0.1.0"
