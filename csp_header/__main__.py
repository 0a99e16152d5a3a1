"""
csp_header CLI
"""
import sys
import argparse
import json

from csp_header.config.loader import get_settings
from csp_header.config.presets import get_preset
from csp_header.logging_config import setup_logging
from csp_header.model.policy import Policy
from csp_header.model.source import generate_nonce


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="csp_header",
        description="csp_header - Content-Security-Policy parser and rewriter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Normalize a policy
  python -m csp_header parse "default-src 'self' ;  script-src 'none'"

  # Show directives and typed sources as JSON
  python -m csp_header parse "script-src 'self' 'nonce-abc' https:" --json

  # Allow an injected inline script with a fresh nonce
  python -m csp_header inject "script-src 'self'" --kind script --generate-nonce

  # Print a preset policy
  python -m csp_header preset balanced
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Parse command
    parse_parser = subparsers.add_parser('parse', help='Parse and normalize a policy')
    parse_parser.add_argument('policy', help='CSP header value')
    parse_parser.add_argument('--json', action='store_true',
                              help='Print directives and typed sources as JSON')

    # Inject command
    inject_parser = subparsers.add_parser('inject', help='Allow an injected inline script or style')
    inject_parser.add_argument('policy', help='CSP header value')
    inject_parser.add_argument('--kind', choices=['script', 'style'], default='script',
                               help='Kind of injected element')
    nonce_group = inject_parser.add_mutually_exclusive_group()
    nonce_group.add_argument('--nonce', help='Nonce carried by the injected element')
    nonce_group.add_argument('--generate-nonce', action='store_true',
                             help='Generate a nonce and print it on the first line')

    # Preset command
    preset_parser = subparsers.add_parser('preset', help='Print a preset policy')
    preset_parser.add_argument('name', nargs='?', help='Preset name (default from settings)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)

    if args.command == 'parse':
        return cmd_parse(args)
    elif args.command == 'inject':
        return cmd_inject(args)
    elif args.command == 'preset':
        return cmd_preset(args)

    return 0


def cmd_parse(args):
    """Execute parse command"""
    policy = Policy.parse(args.policy)

    if args.json:
        print(json.dumps(describe_policy(policy), indent=2))
    else:
        print(policy)

    return 0


def cmd_inject(args):
    """Execute inject command"""
    policy = Policy.parse(args.policy)

    nonce = args.nonce
    if args.generate_nonce:
        nonce = generate_nonce()
        if nonce is None:
            print("Error: could not generate a nonce", file=sys.stderr)
            return 1
        print(nonce)

    if args.kind == 'style':
        policy.allow_injected_style(nonce=nonce)
    else:
        policy.allow_injected_script(nonce=nonce)

    print(policy)
    return 0


def cmd_preset(args):
    """Execute preset command"""
    try:
        policy = get_preset(args.name)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1

    print(policy)
    return 0


def describe_policy(policy):
    """JSON-ready description of a policy"""
    return {
        'policy': str(policy),
        'directives': [
            {
                'name': directive.name,
                'well_known': directive.flavor is not None,
                'sources': [
                    {'kind': source.kind, 'value': str(source)}
                    for source in directive.sources
                ],
            }
            for directive in policy
        ],
    }


if __name__ == '__main__':
    sys.exit(main())
