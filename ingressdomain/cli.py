"""Command-line interface for ingressdomain."""

import argparse
import sys

from .logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def verify_ingress_command(args: argparse.Namespace) -> None:
    """Default the ingress domain of a requirements file and verify its ingress settings."""
    # Import heavy dependencies only when needed
    from .discovery import IngressDomainDiscovery
    from .errors import IngressDomainError
    from .kube import KubeClient
    from .prompts import BatchPrompter, ConsolePrompter
    from .verify import verify_ingress

    setup_logging(args.verbose)

    kube = KubeClient(kubeconfig_path=args.kubeconfig, context=args.context)
    prompter = BatchPrompter() if args.batch_mode else ConsolePrompter()
    discovery = IngressDomainDiscovery(kube, batch_mode=args.batch_mode, prompter=prompter)

    try:
        requirements = verify_ingress(
            discovery,
            directory=args.dir,
            provider=args.provider or "",
            ingress_namespace=args.ingress_namespace or "",
            ingress_service=args.ingress_service or "",
        )
    except IngressDomainError as e:
        logger.error("Ingress verification failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        kube.close()

    print(f"Ingress domain: {requirements.ingress.domain}")


def providers_command(args: argparse.Namespace) -> None:
    """List the supported Kubernetes providers."""
    from .models import provider_options
    print(provider_options())


def version_command(args: argparse.Namespace) -> None:
    """Show version information."""
    from . import __version__
    print(f"ingressdomain {__version__}")


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ingressdomain: discover the external domain of a cluster's ingress controller",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    verify_parser = subparsers.add_parser(
        "verify-ingress",
        help="Verify the ingress configuration defaulting the ingress domain if necessary"
    )
    verify_parser.add_argument(
        "--dir", "-d",
        default=".",
        help="Directory containing the requirements file (default: .)"
    )
    verify_parser.add_argument(
        "--provider",
        help="Cloud service providing the Kubernetes cluster"
    )
    verify_parser.add_argument(
        "--ingress-namespace",
        help="The namespace of the ingress controller service"
    )
    verify_parser.add_argument(
        "--ingress-service",
        help="The name of the ingress controller service"
    )
    verify_parser.add_argument(
        "--batch-mode", "-b",
        action="store_true",
        help="Never prompt, use defaults instead"
    )
    verify_parser.add_argument(
        "--kubeconfig",
        help="Path to kubeconfig file"
    )
    verify_parser.add_argument(
        "--context",
        help="Kubernetes context name"
    )
    verify_parser.set_defaults(func=verify_ingress_command)

    providers_parser = subparsers.add_parser("providers", help="List the supported Kubernetes providers")
    providers_parser.set_defaults(func=providers_command)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=version_command)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
