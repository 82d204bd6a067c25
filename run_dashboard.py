"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``epic_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from epic_app.app import main

st.set_page_config(page_title="Epic Analyzer", layout="wide")

logger = logging.getLogger(__name__)

PAGES_DIR = Path(__file__).parent / "epic_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"epic_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)
        st.sidebar.error(f"Failed importing page {mod_name}: {e}")

if __name__ == "__main__":
    main()
