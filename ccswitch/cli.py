"""
Command line interface for ccswitch
"""
import argparse
import asyncio
import json
import logging
import sys

from ccswitch import __version__
from ccswitch.core.client import APIClient
from ccswitch.core.exceptions import CCSwitchError
from ccswitch.core.log import configure_logging
from ccswitch.models.schemas import ChannelStatus, RequestOptions, DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

logger = logging.getLogger("ccswitch.cli")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog="ccswitch",
        description="A CLI tool for automatic switching between multiple model API channels",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", metavar="PATH", help="Config file (default: $CCSWITCH_CONFIG or the user config dir)")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: $CCSWITCH_LOG_LEVEL or warning)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a new channel configuration")
    add.add_argument("name", help="Channel name")
    add.add_argument("url", help="API endpoint URL")
    add.add_argument("-k", "--key", help="API key")
    add.add_argument("-m", "--model", help="Model name")
    add.add_argument("-p", "--priority", type=int, default=0, help="Priority, lower is tried first (default: 0)")
    add.add_argument("--disabled", action="store_true", help="Add the channel disabled")

    sub.add_parser("list", help="List all configured channels")

    remove = sub.add_parser("remove", help="Remove a channel")
    remove.add_argument("name", help="Channel name to remove")

    test = sub.add_parser("test", help="Test channel availability")
    test.add_argument("name", nargs="?", help="Channel name to test (if not specified, test all)")

    request = sub.add_parser("request", help="Make a request with automatic channel switching")
    request.add_argument("prompt", help="The prompt/message to send")
    request.add_argument("-m", "--model", help="Preferred model name")
    request.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS, help="Maximum tokens")
    request.add_argument("-t", "--temperature", type=float, default=DEFAULT_TEMPERATURE, help="Temperature (0.0-2.0)")
    request.add_argument("--stream", action="store_true", help="Ask the upstream for a streamed response")

    serve = sub.add_parser("serve", help="Expose the channel operations over HTTP")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)

    return parser


def format_channel_status(status: ChannelStatus) -> str:
    icon = "✓" if status.available else "❌"
    message = f"{icon} {status.name} - {'Available' if status.available else 'Unavailable'}"
    if status.response_time_ms is not None:
        message += f" ({status.response_time_ms}ms)"
    if status.error:
        message += f" - {status.error}"
    return f"  {message}"


def cmd_add(client: APIClient, args):
    logger.info(f"Adding channel: {args.name}")
    client.channel_manager.add_channel(
        args.name,
        args.url,
        api_key=args.key,
        model=args.model,
        priority=args.priority,
        enabled=not args.disabled,
    )
    print(f"✓ Channel '{args.name}' added successfully")


def cmd_list(client: APIClient, args):
    channels = client.channel_manager.list_channels()
    if not channels:
        print("No channels configured")
        return
    print("Configured channels:")
    for channel in channels:
        status = "enabled" if channel.enabled else "disabled"
        print(f"  {channel.name} [{status}] - {channel.url} "
              f"(model: {channel.model or 'any'}, priority: {channel.priority})")


def cmd_remove(client: APIClient, args):
    logger.info(f"Removing channel: {args.name}")
    client.channel_manager.remove_channel(args.name)
    print(f"✓ Channel '{args.name}' removed successfully")


async def cmd_test(client: APIClient, args):
    manager = client.channel_manager
    if args.name:
        channel = manager.get_channel(args.name)
        print(f"Testing channel: {args.name}")
        print(format_channel_status(await manager.test_channel(channel)))
        return
    print("Testing all channels:")
    for status in await manager.test_all_channels():
        print(format_channel_status(status))


async def cmd_request(client: APIClient, args):
    options = RequestOptions(
        model=args.model,
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        stream=args.stream,
    )
    response = await client.make_request(args.prompt, options)
    print(f"✓ Response from {response.channel_used} (model: {response.model}):")
    print(response.content)
    if response.usage is not None:
        print(f"\nUsage: {json.dumps(response.usage, ensure_ascii=False)}")


async def run_command(client: APIClient, args):
    try:
        if args.command == "test":
            await cmd_test(client, args)
        elif args.command == "request":
            await cmd_request(client, args)
    finally:
        await client.close()


def main(argv=None) -> int:
    """Main entry point; returns the process exit status"""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        client = APIClient.load(args.config)
        if args.command == "add":
            cmd_add(client, args)
        elif args.command == "list":
            cmd_list(client, args)
        elif args.command == "remove":
            cmd_remove(client, args)
        elif args.command == "serve":
            from ccswitch.core.server import run_server
            run_server(client, host=args.host, port=args.port, log_level=args.log_level)
        else:
            asyncio.run(run_command(client, args))
    except CCSwitchError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
