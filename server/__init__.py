"""
FastAPI backend for decksmith.

Provides REST endpoints for:
- Document upload and conversion
- Job history (recent and archived)
- PPTX export per deck variant
- Settings
"""

__version__ = "0.1.0"
