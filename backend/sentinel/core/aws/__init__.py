"""AWS service clients."""

from .clients import ApiGatewayConnectionSink, AwsTranslateClient

__all__ = ["ApiGatewayConnectionSink", "AwsTranslateClient"]
