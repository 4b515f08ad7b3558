"""
Factory for creating the telemetry connector based on configuration.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from connectors.signoz import SignozConnector


class DataSourceFactory:

    @staticmethod
    def create_telemetry(config):
        from config import TELEMETRY_BACKEND_SIGNOZ
        if config.telemetry_backend == TELEMETRY_BACKEND_SIGNOZ:
            return SignozConnector(
                config.signoz_url,
                api_key=config.signoz_api_key,
                api_version=config.signoz_api_version,
                timeout=config.connector_timeout,
            )
        raise ValueError("Unsupported telemetry backend")
