from .mail_transport import DeliveryInfo, IMailTransport, OutboundMessage

__all__ = ["DeliveryInfo", "IMailTransport", "OutboundMessage"]
