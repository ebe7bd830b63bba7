"""Jobs periódicos (chamados pelo scheduler)."""
