# Repositories package: gateway implementation and record mapping

from .document_gateway import SqlAlchemyGateway

__all__ = ["SqlAlchemyGateway"]
