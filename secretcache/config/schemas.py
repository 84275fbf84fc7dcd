"""Configuration file schema for SecretCache."""

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "secretcache": {
            "type": "object",
            "properties": {
                "region": {
                    "type": "string",
                    "description": "AWS region of the Secrets Manager endpoint"
                },
                "endpoint_url": {
                    "type": "string",
                    "description": "Custom Secrets Manager endpoint (e.g. LocalStack)"
                },
                "cache_ttl_seconds": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "TTL used when no rotation schedule is known or inside the buffer"
                },
                "rotation_buffer_days": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Days before rotation at which rechecking intensifies"
                },
                "default_secret_name": {
                    "type": "string",
                    "description": "Secret used by 'secretcache test' when none is given"
                },
                "encryption_key": {
                    "type": "string",
                    "description": "Fernet key used to encrypt cached payloads"
                },
                "cache": {
                    "type": "object",
                    "properties": {
                        "backend": {
                            "type": "string",
                            "enum": ["memory", "file"]
                        },
                        "path": {
                            "type": "string",
                            "description": "Directory for the file backend"
                        }
                    },
                    "additionalProperties": False
                }
            },
            "additionalProperties": False
        }
    },
    "required": ["secretcache"],
    "additionalProperties": False
}
