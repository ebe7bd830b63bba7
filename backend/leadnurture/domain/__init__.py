"""Domínio: entidades, prompts e regras de negócio."""
