# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Run the gateway with uvicorn: ``python -m sec_gateway``."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "sec_gateway.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":  # pragma: no cover
    main()
