"""Module entrypoint for `python -m bedrockbot`.

Purpose: Delegate to `bedrockbot.runner.main` to start the bot.
"""

from .runner import main


if __name__ == "__main__":
    main()
