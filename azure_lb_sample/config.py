import os
from typing import ClassVar, Optional, Union, Mapping

from attr import define, field
from azure.identity import DefaultAzureCredential, ClientSecretCredential

from azure_lb_sample.args import ArgumentParser
from azure_lb_sample.resources import FrontendSubnet
from azure_lb_sample.utils import create_username

AzureCredentials = Union[DefaultAzureCredential, ClientSecretCredential]


class ConfigError(Exception):
    pass


@define
class AzureClientSecretConfig:
    kind: ClassVar[str] = "azure_client_secret"
    tenant_id: str = field(metadata={"description": "Azure tenant ID"})
    client_id: str = field(metadata={"description": "Azure client ID"})
    client_secret: str = field(repr=False, metadata={"description": "Azure client secret"})


@define
class SampleConfig:
    kind: ClassVar[str] = "azure_lb_sample"

    subscription_id: str = field(metadata={"description": "Subscription the resources are created in"})
    client_secret: Optional[AzureClientSecretConfig] = field(
        default=None,
        metadata={
            "description": "Service principal used for authentication.\n"
            "If no secret is provided the default credential chain will be used."
        },
    )
    region: str = field(default="eastus", metadata={"description": "Region of all created resources"})
    vm_size: str = field(default="Standard_D2a_v4", metadata={"description": "Size of the virtual machines"})
    admin_username: str = field(factory=create_username, metadata={"description": "Admin user of the VMs"})
    ssh_public_key: Optional[str] = field(
        default=None,
        repr=False,
        metadata={"description": "SSH public key of the admin user. Password authentication is used if not set."},
    )
    load_balancer_sku: str = field(default="Standard", metadata={"description": "SKU of the load balancers"})
    idle_timeout_in_minutes: int = field(
        default=15, metadata={"description": "TCP idle timeout set on the load balancing rules during the update"}
    )
    internal_frontend: bool = field(
        default=False,
        metadata={"description": "Use a private frontend in the frontend subnet instead of a public ip address"},
    )
    frontend_subnet: str = field(
        default=FrontendSubnet, metadata={"description": "Subnet of the network interfaces and internal frontends"}
    )

    def credentials(self) -> AzureCredentials:
        if cs := self.client_secret:
            return ClientSecretCredential(
                tenant_id=cs.tenant_id,
                client_id=cs.client_id,
                client_secret=cs.client_secret,
            )

        return DefaultAzureCredential(process_timeout=300)

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        arg_parser.add_argument("--region", default="eastus", help="Region of all created resources")
        arg_parser.add_argument("--vm-size", default="Standard_D2a_v4", help="Size of the virtual machines")
        arg_parser.add_argument("--admin-username", default=create_username(), help="Admin user of the VMs")
        arg_parser.add_argument("--ssh-public-key", default=None, help="SSH public key of the admin user")
        arg_parser.add_argument("--load-balancer-sku", default="Standard", help="SKU of the load balancers")
        arg_parser.add_argument("--idle-timeout", default=15, type=int, help="TCP idle timeout in minutes")
        arg_parser.add_argument(
            "--internal-frontend",
            default=False,
            action="store_true",
            help="Use a private frontend instead of a public ip address",
        )
        arg_parser.add_argument("--frontend-subnet", default=FrontendSubnet, help="Subnet of the frontend and NICs")

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None, **options: object) -> "SampleConfig":
        """
        Read credentials and subscription from the environment.
        CLIENT_ID, CLIENT_SECRET and TENANT_ID define a service principal, SUBSCRIPTION_ID is required.
        """
        env = os.environ if environ is None else environ
        subscription_id = env.get("SUBSCRIPTION_ID") or env.get("AZURE_SUBSCRIPTION_ID")
        if not subscription_id:
            raise ConfigError("SUBSCRIPTION_ID is not set")
        client_id, client_secret, tenant_id = env.get("CLIENT_ID"), env.get("CLIENT_SECRET"), env.get("TENANT_ID")
        secret = (
            AzureClientSecretConfig(tenant_id=tenant_id, client_id=client_id, client_secret=client_secret)
            if client_id and client_secret and tenant_id
            else None
        )
        try:
            return SampleConfig(subscription_id=subscription_id, client_secret=secret, **options)  # type: ignore
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
