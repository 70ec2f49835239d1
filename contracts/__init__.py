"""Contracts shared by the report pipeline.

The contracts package defines:
- the AWS client bag handed to the metric fetchers
- the factory that builds those clients from configuration

Main exports:
- Services, ServicesFactory, build_services
"""

from contracts import services as services_module

__all__ = [
    "Services",
    "ServicesFactory",
    "build_services",
]

Services = services_module.Services
ServicesFactory = services_module.ServicesFactory
build_services = services_module.build_services
