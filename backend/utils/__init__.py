"""
Utilities package.

Provides helper functions used by the service layer and exporters.

Modules:
    formatting: Distance, duration and bearing labels
"""
