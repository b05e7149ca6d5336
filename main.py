#!/usr/bin/env -S uv --quiet run --script
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "click",
#     "textual",
#     "rich",
#     "PyYAML",
# ]
# ///

from grove.cli import main


if __name__ == "__main__":
    main()
