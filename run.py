#!/usr/bin/env python3
"""Run script for screenblock."""

import logging
import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("SCREENBLOCK_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "screenblock.api.app:app",
        host=os.getenv("SCREENBLOCK_HOST", "127.0.0.1"),
        port=int(os.getenv("SCREENBLOCK_PORT", "8765")),
        reload=False,
    )
