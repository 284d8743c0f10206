"""Turns a located ingress address into the domain used for ingress rules."""

import ipaddress
import os
import socket
import time
from typing import Callable, Optional, Tuple, Union

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import MissingDomainError
from .logging_config import get_logger, log_function_entry, log_function_exit, log_resolution_event
from .models import MAGIC_DNS_SUFFIX, ProviderTag
from .prompts import BatchPrompter, Prompter
from .providers import LOCAL_CLI_COMMANDS, DiscoveryStrategy, strategy_for
from .shell import CommandRunner, DomainRegistrar, LoggingDomainRegistrar

logger = get_logger(__name__)

AWS_HOSTNAME_SUFFIX = ".amazonaws.com"
IKS_DOMAIN_SUFFIX = "containers.appdomain.cloud"
AWS_DOMAIN_REGISTRATION_URL = "https://console.aws.amazon.com/route53/home?#DomainRegistration:"

DNS_RESOLVE_ATTEMPTS = 5
DNS_RESOLVE_WAIT = 10.0

ClusterIdentity = Callable[[], Tuple[str, str]]

# (final domain or None to continue with the generic path, possibly updated address)
HandlerResult = Tuple[Optional[str], str]


def is_ip_address(address: str) -> bool:
    try:
        ipaddress.ip_address(address)
    except ValueError:
        return False
    return True


def magic_dns_domain(ip: str) -> str:
    return f"{ip}.{MAGIC_DNS_SUFFIX}"


def running_in_cluster_bootstrap() -> bool:
    """Whether we run inside the cluster or inside the pipeline interpreting the boot process."""
    return bool(os.getenv("KUBERNETES_SERVICE_HOST")) or os.getenv("JX_INTERPRET_PIPELINE") == "true"


def lookup_ip(address: str) -> str:
    """Return the first non loopback IP ``address`` resolves to.

    Raises:
        OSError: If the address does not resolve to a usable IP yet.
    """
    for _family, _type, _proto, _canonname, sockaddr in socket.getaddrinfo(address, None):
        ip = sockaddr[0]
        if ip and not ipaddress.ip_address(ip).is_loopback:
            return ip
    raise OSError(f"Address cannot be resolved yet {address}")


class DomainResolver:
    """Decides the ingress domain for a provider and a located address.

    Interactive questions go through ``prompter``; in batch mode it is never
    asked anything.
    """

    def __init__(self,
                 prompter: Optional[Prompter] = None,
                 runner: Optional[CommandRunner] = None,
                 registrar: Optional[DomainRegistrar] = None,
                 cluster_identity: Optional[ClusterIdentity] = None,
                 in_cluster: Optional[bool] = None,
                 resolve_attempts: int = DNS_RESOLVE_ATTEMPTS,
                 resolve_wait: float = DNS_RESOLVE_WAIT,
                 sleep: Callable[[float], None] = time.sleep):
        self.prompter = prompter or BatchPrompter()
        self.runner = runner or CommandRunner()
        self.registrar = registrar or LoggingDomainRegistrar()
        self.cluster_identity = cluster_identity
        self.in_cluster = running_in_cluster_bootstrap() if in_cluster is None else in_cluster
        self.resolve_attempts = resolve_attempts
        self.resolve_wait = resolve_wait
        self._sleep = sleep
        self._handlers = {
            DiscoveryStrategy.LOCAL_CLI: self._resolve_local_cli,
            DiscoveryStrategy.DNS_ALIAS: self._resolve_dns_alias,
            DiscoveryStrategy.PROVIDER_DOMAIN: self._resolve_provider_domain,
            DiscoveryStrategy.ENDPOINT: self._resolve_endpoint,
        }

    def resolve(self, provider: Union[str, ProviderTag], address: str, explicit_domain: str = "",
                batch_mode: bool = False, node_port: bool = False) -> str:
        """Return the domain for ``address``.

        Raises:
            ShellCommandError: If the local cluster CLI cannot report its IP.
            MissingDomainError: If a domain is mandatory but none could be
                obtained without asking the user.
        """
        provider = ProviderTag.parse(provider)
        strategy = strategy_for(provider)
        log_function_entry(logger, "resolve", provider=str(provider), strategy=strategy.value,
                           address=address, explicit_domain=explicit_domain,
                           batch_mode=batch_mode, node_port=node_port)

        domain, address = self._handlers[strategy](provider, address, explicit_domain, batch_mode)
        if domain is None:
            domain = self._generic(provider, address, explicit_domain, batch_mode, node_port)

        log_resolution_event(logger, "domain_resolved", provider=str(provider), domain=domain)
        log_function_exit(logger, "resolve", domain=domain)
        return domain

    def _resolve_endpoint(self, provider: ProviderTag, address: str, explicit_domain: str,
                          batch_mode: bool) -> HandlerResult:
        return None, address

    def _resolve_local_cli(self, provider: ProviderTag, address: str, explicit_domain: str,
                           batch_mode: bool) -> HandlerResult:
        if not address:
            address = self.runner.run(LOCAL_CLI_COMMANDS[provider], "ip")
            logger.debug("Local cluster IP", provider=str(provider), address=address)
        return None, address

    def _resolve_dns_alias(self, provider: ProviderTag, address: str, explicit_domain: str,
                           batch_mode: bool) -> HandlerResult:
        if explicit_domain:
            self.registrar.register(explicit_domain, address)
            return explicit_domain, address

        # the magic DNS domain would be lost on every reboot, so only offer a
        # custom domain outside of the cluster bootstrap
        if self.in_cluster:
            return None, address

        logger.info("We recommend using a custom DNS name to access services in your Kubernetes cluster "
                    "to ensure you can use all of your Availability Zones", provider=str(provider))
        logger.info("If you do not have a custom DNS name yet, you can register a new one",
                    url=AWS_DOMAIN_REGISTRATION_URL)
        if batch_mode:
            raise MissingDomainError(str(provider))

        while self.prompter.confirm(
                "Would you like to register a wildcard DNS ALIAS to point at this ELB address?", True,
                help="A wildcard DNS alias pointing at the ELB host name lets you access services "
                     "inside your cluster and in your Environments."):
            custom_domain = self.prompter.ask_domain(
                "", help=f"Enter your custom domain to setup an ALIAS record pointing at the ELB host: {address}")
            if custom_domain:
                self.registrar.register(custom_domain, address)
                return custom_domain, address
        return None, address

    def _resolve_provider_domain(self, provider: ProviderTag, address: str, explicit_domain: str,
                                 batch_mode: bool) -> HandlerResult:
        if explicit_domain:
            logger.info("Using the provided domain. Ensure the name is registered with DNS "
                        "and points at the cluster ingress IP", domain=explicit_domain, address=address)
            return explicit_domain, address

        cluster_name, region = "", ""
        if self.cluster_identity is not None:
            try:
                cluster_name, region = self.cluster_identity()
            except Exception as e:
                logger.error("Could not determine the cluster name and region", provider=str(provider), error=str(e))

        if cluster_name and region:
            domain = f"{cluster_name}.{region}.{IKS_DOMAIN_SUFFIX}"
            logger.info("Using the default cluster domain", provider=str(provider), domain=domain)
            return domain, address

        logger.warning("No default cluster domain available", provider=str(provider),
                       cluster_name=cluster_name, region=region)
        return None, address

    def _generic(self, provider: ProviderTag, address: str, explicit_domain: str,
                 batch_mode: bool, node_port: bool) -> str:
        default_domain = address
        if address and not node_port:
            add_magic_dns = True
            if not is_ip_address(address):
                logger.info("The ingress address is not an IP address, resolving it to a public IP "
                            "address to use for the domain", address=address)
                resolve = True
                if not batch_mode:
                    resolve = self.prompter.confirm(
                        "Would you like wait and resolve this address to an IP address and use it for the domain?",
                        True, help=f"Should we convert {address} to an IP address so we can access resources externally")
                resolved_ip = self.resolve_hostname(address) if resolve else ""
                if resolved_ip:
                    logger.info("Address resolved", address=address, ip=resolved_ip)
                    address = resolved_ip
                else:
                    add_magic_dns = False
                    logger.warning("Could not resolve the address into an IP address, "
                                   "please figure out the domain by hand", address=address)
            if add_magic_dns and not address.endswith(AWS_HOSTNAME_SUFFIX):
                default_domain = magic_dns_domain(address)

        if explicit_domain:
            if explicit_domain != default_domain:
                logger.info("You can now configure your wildcard DNS", domain=explicit_domain, address=address)
            return explicit_domain

        if batch_mode:
            if not default_domain:
                raise MissingDomainError(str(provider))
            logger.info("No domain provided, using the default to generate Ingress rules", domain=default_domain)
            return default_domain

        logger.info("You can now configure a wildcard DNS pointing to the Load Balancer address", address=address)
        logger.info("Without a custom domain, Ingress rules will use magic DNS", suffix=MAGIC_DNS_SUFFIX)
        domain = self.prompter.ask_domain(
            default_domain,
            help=f"Enter your custom domain used to generate Ingress rules, defaults to the magic DNS {MAGIC_DNS_SUFFIX}")
        domain = domain or default_domain
        if not domain:
            raise MissingDomainError(str(provider))
        return domain

    def resolve_hostname(self, address: str) -> str:
        """Resolve ``address`` to an IP, retrying while DNS catches up.

        Returns an empty string when the address never resolves.
        """
        logger.info("Waiting for the address to be resolvable to an IP address", address=address,
                    attempts=self.resolve_attempts)
        retrying = Retrying(
            stop=stop_after_attempt(self.resolve_attempts),
            wait=wait_fixed(self.resolve_wait),
            retry=retry_if_exception_type(OSError),
            sleep=self._sleep,
        )
        try:
            return retrying(lookup_ip, address)
        except RetryError as e:
            logger.debug("Address resolution exhausted", address=address,
                         error=str(e.last_attempt.exception()))
            return ""
        except UnicodeError as e:
            # malformed host names fail IDNA encoding and never resolve
            logger.warning("Address is not a valid host name", address=address, error=str(e))
            return ""
