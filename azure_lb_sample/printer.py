"""
Human readable descriptions of the resources returned by Azure.
"""

from typing import Any, List, Optional

from azure_lb_sample.model import Json, resource_name


def _value(value: Any) -> str:
    if value is None or value == "" or value == [] or value == {}:
        return "(none)"
    return str(value)


def _ref(ref: Optional[Json]) -> str:
    return resource_name(ref["id"]) if ref and ref.get("id") else "(none)"


def _refs(refs: Optional[List[Json]]) -> str:
    return _value(", ".join(_ref(r) for r in refs or []))


def _nic(ref: Json) -> str:
    # backend ip configurations are children of a network interface: .../networkInterfaces/{nic}/ipConfigurations/{ip}
    segments = (ref.get("id") or "").split("/")
    lowered = [s.lower() for s in segments]
    if "networkinterfaces" in lowered:
        at = lowered.index("networkinterfaces") + 1
        if at < len(segments):
            return segments[at]
    return _ref(ref)


def _header(title: str, resource: Json) -> List[str]:
    lines = [
        f"{title}: {_value(resource.get('id'))}",
        f"\tName: {_value(resource.get('name'))}",
        f"\tRegion: {_value(resource.get('location'))}",
    ]
    tags = resource.get("tags") or {}
    lines.append(f"\tTags: {_value(', '.join(f'{k}={v}' for k, v in tags.items()))}")
    return lines


def describe_virtual_network(network: Json) -> str:
    lines = _header("Network", network)
    prefixes = (network.get("address_space") or {}).get("address_prefixes")
    lines.append(f"\tAddress spaces: {_value(', '.join(prefixes or []))}")
    for subnet in network.get("subnets") or []:
        lines.append(f"\tSubnet: {subnet.get('name')}")
        lines.append(f"\t\tAddress prefix: {_value(subnet.get('address_prefix'))}")
    return "\n".join(lines)


def describe_public_ip(ip: Json) -> str:
    lines = _header("Public IP address", ip)
    dns = ip.get("dns_settings") or {}
    lines += [
        f"\tIP address: {_value(ip.get('ip_address'))}",
        f"\tLeaf domain label: {_value(dns.get('domain_name_label'))}",
        f"\tFQDN: {_value(dns.get('fqdn'))}",
        f"\tIP allocation method: {_value(ip.get('public_ip_allocation_method'))}",
        f"\tSKU: {_value((ip.get('sku') or {}).get('name'))}",
    ]
    return "\n".join(lines)


def describe_load_balancer(lb: Json) -> str:
    lines = _header("Load balancer", lb)
    lines.append(f"\tSKU: {_value((lb.get('sku') or {}).get('name'))}")

    frontends = lb.get("frontend_ip_configurations") or []
    lines.append(f"\tFrontends: {len(frontends)}")
    for fe in frontends:
        if fe.get("public_ip_address"):
            lines.append(f"\t\tFrontend {fe.get('name')}: public ip {_ref(fe.get('public_ip_address'))}")
        else:
            lines.append(
                f"\t\tFrontend {fe.get('name')}: private ip {_value(fe.get('private_ip_address'))}"
                f" in subnet {_ref(fe.get('subnet'))}"
            )

    probes = lb.get("probes") or []
    lines.append(f"\tProbes: {len(probes)}")
    for probe in probes:
        lines.append(
            f"\t\tProbe {probe.get('name')}: {_value(probe.get('protocol'))} port {_value(probe.get('port'))}"
            f" path {_value(probe.get('request_path'))}, interval {_value(probe.get('interval_in_seconds'))}s,"
            f" {_value(probe.get('number_of_probes'))} probes"
        )

    rules = lb.get("load_balancing_rules") or []
    lines.append(f"\tLoad balancing rules: {len(rules)}")
    for rule in rules:
        lines.append(
            f"\t\tRule {rule.get('name')}: {_value(rule.get('protocol'))}"
            f" {_ref(rule.get('frontend_ip_configuration'))}:{_value(rule.get('frontend_port'))}"
            f" -> {_ref(rule.get('backend_address_pool'))}:{_value(rule.get('backend_port'))}"
            f", probe {_ref(rule.get('probe'))}, idle timeout {_value(rule.get('idle_timeout_in_minutes'))} min"
        )

    nat_rules = lb.get("inbound_nat_rules") or []
    lines.append(f"\tInbound NAT rules: {len(nat_rules)}")
    for rule in nat_rules:
        lines.append(
            f"\t\tNAT rule {rule.get('name')}: {_value(rule.get('protocol'))}"
            f" {_ref(rule.get('frontend_ip_configuration'))}:{_value(rule.get('frontend_port'))}"
            f" -> {_value(rule.get('backend_port'))}"
        )

    pools = lb.get("backend_address_pools") or []
    lines.append(f"\tBackend pools: {len(pools)}")
    for pool in pools:
        nics = ", ".join(_nic(ip) for ip in pool.get("backend_ip_configurations") or [])
        lines.append(f"\t\tBackend pool {pool.get('name')}: NICs {_value(nics)}")
    return "\n".join(lines)


def describe_network_interface(nic: Json) -> str:
    lines = _header("Network interface", nic)
    lines.append(f"\tMAC address: {_value(nic.get('mac_address'))}")
    lines.append(f"\tVirtual machine: {_ref(nic.get('virtual_machine'))}")
    for ip_config in nic.get("ip_configurations") or []:
        lines += [
            f"\tIP configuration: {ip_config.get('name')}",
            f"\t\tPrivate IP: {_value(ip_config.get('private_ip_address'))}"
            f" ({_value(ip_config.get('private_ip_allocation_method'))})",
            f"\t\tSubnet: {_ref(ip_config.get('subnet'))}",
            f"\t\tBackend pools: {_refs(ip_config.get('load_balancer_backend_address_pools'))}",
            f"\t\tInbound NAT rules: {_refs(ip_config.get('load_balancer_inbound_nat_rules'))}",
        ]
    return "\n".join(lines)


def describe_availability_set(availability_set: Json) -> str:
    lines = _header("Availability set", availability_set)
    lines += [
        f"\tFault domain count: {_value(availability_set.get('platform_fault_domain_count'))}",
        f"\tUpdate domain count: {_value(availability_set.get('platform_update_domain_count'))}",
        f"\tVirtual machines: {_refs(availability_set.get('virtual_machines'))}",
    ]
    return "\n".join(lines)


def describe_virtual_machine(vm: Json) -> str:
    lines = _header("Virtual machine", vm)
    storage = vm.get("storage_profile") or {}
    image = storage.get("image_reference") or {}
    os_profile = vm.get("os_profile") or {}
    lines += [
        f"\tSize: {_value((vm.get('hardware_profile') or {}).get('vm_size'))}",
        f"\tImage: {':'.join(_value(image.get(p)) for p in ('publisher', 'offer', 'sku', 'version'))}",
        f"\tOS disk: {_value((storage.get('os_disk') or {}).get('name'))}",
        f"\tComputer name: {_value(os_profile.get('computer_name'))}",
        f"\tAdmin user: {_value(os_profile.get('admin_username'))}",
        f"\tAvailability set: {_ref(vm.get('availability_set'))}",
        f"\tNetwork interfaces: {_refs((vm.get('network_profile') or {}).get('network_interfaces'))}",
        f"\tProvisioning state: {_value(vm.get('provisioning_state'))}",
    ]
    return "\n".join(lines)
