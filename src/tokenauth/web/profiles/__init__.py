"""Demo route groups served by ``create_app``, one module per profile."""
