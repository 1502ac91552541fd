# Copyright 2026 Dylan Grech
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0

"""
Process entry point - runs the companion REST API and its idle sweeper.

Usage: python consumer.py
"""

import logging

APP_VERSION = "0.1.0"


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    from workers.rest_api_worker import rest_api_worker

    logging.info(f"[Consumer] Companion service v{APP_VERSION} starting")
    rest_api_worker()
