"""
MyDiary backend package.

A per-day diary and todo list over a local record store. The FastAPI app
lives in ``mydiary.main`` (install the ``serve`` extra and run ``uvicorn mydiary.main:app``).
"""

__version__ = "0.1.0"
