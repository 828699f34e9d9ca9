"""Point-of-sale order engine: compose a sale, settle it, print the receipt."""
