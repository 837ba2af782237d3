"""
Command Line Front-end for cohost-bot.

Usage:
    $ cohost-bot post --headline "hello" --attach cat.png --alt "a cat"
    $ cohost-bot edit 123 --markdown "yahoo\\n\\n---\\n\\nread more works!"
    $ cohost-bot share 59547 --markdown "wow"
    $ cohost-bot delete 123

Credentials:
    Email, project and password are read from config.yml (cohost.email,
    cohost.project, cohost.password_file). The environment variables
    COHOST_EMAIL, COHOST_PROJECT and COHOST_PASSWORD override them.
    COHOST_DEBUG=1 has the same effect as --debug.
"""
import argparse
import logging
import mimetypes
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from .attachment import Attachment
from .client import CohostClient
from .config import load_config, get_cohost_settings, read_secret_file
from .errors import CohostError
from .post import Post

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False, log_file: Optional[str] = "cohost-bot.log") -> None:
    """Configure the root logger with a rotating file handler and stdout.

    Args:
        debug: Log at DEBUG instead of INFO
        log_file: Log file path (10MB, 3 backups); None disables file logging
    """
    log_level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if log_file:
        log_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3
        )
        log_handler.setLevel(log_level)
        log_handler.setFormatter(formatter)
        root_logger.addHandler(log_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def _add_content_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--headline", default="", help="post headline")
    parser.add_argument("--markdown", default="", help="markdown body; blank lines separate blocks")
    parser.add_argument("--attach", action="append", default=[], metavar="PATH",
                        help="attach a file (repeatable)")
    parser.add_argument("--content-type", action="append", default=[], metavar="TYPE",
                        help="MIME type of the matching --attach (guessed when omitted)")
    parser.add_argument("--alt", action="append", default=[], metavar="TEXT",
                        help="alt text of the matching --attach")
    parser.add_argument("--tag", action="append", default=[], help="tag (repeatable)")
    parser.add_argument("--cw", action="append", default=[], help="content warning (repeatable)")
    parser.add_argument("--draft", action="store_true", help="keep the post as a draft")
    parser.add_argument("--adult", action="store_true", help="mark as adult content")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cohost-bot", description="Post to cohost from the command line.")
    parser.add_argument("--config", help="path to config.yml")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    post_parser = subparsers.add_parser("post", help="create a post")
    _add_content_arguments(post_parser)

    edit_parser = subparsers.add_parser("edit", help="replace the contents of a post")
    edit_parser.add_argument("post_id", type=int)
    _add_content_arguments(edit_parser)

    share_parser = subparsers.add_parser("share", help="share a post, optionally with added content")
    share_parser.add_argument("post_id", type=int)
    _add_content_arguments(share_parser)

    delete_parser = subparsers.add_parser("delete", help="delete a post")
    delete_parser.add_argument("post_id", type=int)

    return parser


def build_post(args: argparse.Namespace) -> Post:
    """Build a Post from parsed content arguments.

    Raises:
        CohostIOError: If an attached file cannot be opened; files already
            opened for earlier attachments are closed
    """
    attachments: List[Attachment] = []
    try:
        for i, path in enumerate(args.attach):
            if i < len(args.content_type):
                content_type = args.content_type[i]
            else:
                content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
            alt_text = args.alt[i] if i < len(args.alt) else ""
            attachments.append(Attachment.from_file(path, content_type, alt_text=alt_text))
    except CohostError:
        for attachment in attachments:
            attachment.close()
        raise

    return Post(
        headline=args.headline,
        markdown=args.markdown.replace("\\n", "\n"),
        attachments=attachments,
        tags=args.tag,
        content_warnings=args.cw,
        adult_content=args.adult,
        draft=args.draft,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the cohost-bot console command.

    Returns:
        Process exit code (0 on success, 1 on error)
    """
    args = build_parser().parse_args(argv)
    debug = args.debug or os.environ.get("COHOST_DEBUG", "").lower() in ("true", "1", "yes")

    config = load_config(args.config)
    configure_logging(debug, (config.get("logging") or {}).get("file", "cohost-bot.log"))
    settings = get_cohost_settings(config)

    email = os.environ.get("COHOST_EMAIL") or settings["email"]
    project = os.environ.get("COHOST_PROJECT") or settings["project"]
    password = os.environ.get("COHOST_PASSWORD") or read_secret_file(settings["password_file"])
    if not email or not password or not project:
        logger.error("Missing credentials: set cohost.email, cohost.project and cohost.password_file "
                     "in config.yml or COHOST_EMAIL, COHOST_PROJECT and COHOST_PASSWORD")
        return 1

    try:
        session = CohostClient.from_config(config).login(email, password)

        if args.command == "delete":
            session.delete_post(project, args.post_id)
            print(args.post_id)
            return 0

        post = build_post(args)
        if args.command == "post":
            post_id = session.create_post(project, post)
        elif args.command == "edit":
            post_id = session.edit_post(project, args.post_id, post)
        else:
            post_id = session.share_post(project, args.post_id, post)
    except CohostError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(post_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
