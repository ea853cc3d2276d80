"""TAS agent package lifecycle manager.

Two phases share this package:
- Packager: build the agent, lay out a package tree, archive it
- Installer/Remover: copy an extracted tree onto a target root and undo it

Core design goals:
- Fail fast on every step, no partial tarballs
- Idempotent remove
- Platform-aware initramfs layout
- Centralized logging
"""

__all__ = []

__version__ = "0.1.0"
