"""
CNPJ source adapters for ConsultaCNPJBot.

Each adapter queries one public Brazilian company registry (CNPJá,
ReceitaWS, BrasilAPI) by CNPJ, owns its retry policy and always resolves to
a Success/Failure outcome.
"""
