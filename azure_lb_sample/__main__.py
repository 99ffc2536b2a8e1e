import logging
import sys
from typing import List, Optional

from azure_lb_sample.args import ArgumentParser
from azure_lb_sample.azure_client import ManagementClient
from azure_lb_sample.config import ConfigError, SampleConfig
from azure_lb_sample.logger import setup_logger, add_args as logging_add_args
from azure_lb_sample.workflow import LoadBalancerWorkflow

log = logging.getLogger("azure_lb_sample")


def main(argv: Optional[List[str]] = None) -> None:
    arg_parser = ArgumentParser(description="Azure load balancer sample", env_args_prefix="LBSAMPLE_")
    logging_add_args(arg_parser)
    SampleConfig.add_args(arg_parser)
    args = arg_parser.parse_args(argv)
    setup_logger("azure-lb-sample", verbose=args.verbose, quiet=args.quiet)

    try:
        config = SampleConfig.from_env(
            region=args.region,
            vm_size=args.vm_size,
            admin_username=args.admin_username,
            ssh_public_key=args.ssh_public_key,
            load_balancer_sku=args.load_balancer_sku,
            idle_timeout_in_minutes=args.idle_timeout,
            internal_frontend=args.internal_frontend,
            frontend_subnet=args.frontend_subnet,
        )
    except ConfigError as e:
        log.fatal(f"Invalid configuration: {e}")
        sys.exit(1)

    client = ManagementClient.create(config)
    result = LoadBalancerWorkflow(client, config).run()
    if result.succeeded:
        log.info(f"Sample completed. Resource group {result.resource_group} has been deleted.")
    else:
        log.error(
            f"Sample did not complete. Failed step: {result.failed_step or '-'}, error: {result.error or '-'}, "
            f"cleanup: {result.cleanup.value if result.cleanup else '-'}"
        )


if __name__ == "__main__":
    main()
