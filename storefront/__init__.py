# storefront/__init__.py
