"""Shared test configuration: add the nvim Python path to sys.path."""
import os
import sys

_HERE = os.path.dirname(os.path.abspath(__file__))
_NVIM_PY = os.path.abspath(os.path.join(_HERE, "..", "nvim", "syntaxgaslighting.nvim", "python"))

if _NVIM_PY not in sys.path:
    sys.path.insert(0, _NVIM_PY)
