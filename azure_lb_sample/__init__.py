"""
Azure load balancer sample
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Provisions an Internet facing load balancer with two virtual machines and tears it down again.
:license: Apache 2.0, see LICENSE for more details.
"""

__title__ = "azure-lb-sample"
__description__ = "Provisions an Internet facing load balancer with two virtual machines and tears it down again."
__license__ = "Apache 2.0"
__version__ = "1.0.0"
