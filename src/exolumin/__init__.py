"""
Pacote principal do EXOLUMIN.

Os modulos seguem um pipeline funcional: ingestao dos registros KOI,
alinhamento a largura do modelo, inferencia e calibracao da probabilidade.
"""

__all__ = ["config", "schema", "errors"]
