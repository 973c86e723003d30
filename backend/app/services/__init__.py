# Services package init
"""
PlaceShare Backend - Services Layer
=====================================

Business logic between routes (HTTP) and the database.

Service Inventory:
    - GeocodingService: address → {lat, lng} (coordinate resolver)
    - CredentialGate:   bearer token issue/verify, password hashing
    - PlaceService:     place CRUD with ownership checks (place repository)
    - link_manager:     keeps Place.creator and User.places in lockstep
    - UserService:      signup, login, user listing
    - FileService:      image validation, storage and cleanup
"""
