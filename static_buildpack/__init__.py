"""Static site buildpack.

Detects plain HTML sites, ``public/`` directories and front-end framework
build output, and contributes an nginx configuration layer that serves them.
"""

__version__ = '0.1.0'
