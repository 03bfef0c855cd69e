"""Parser dei formati testuali (mesi coperti dai pagamenti)."""
