"""
PhotoMemo Backend: Services Layer
=================================

Business logic between routes (HTTP) and persistence.

Service Inventory:
    - AuthService:     register, login with attempt throttling, whoami
    - PostService:     post CRUD with ownership checks
    - attachments:     key/URL translation and best-effort storage cleanup
    - ObjectStorage:   async put/delete over an S3-compatible bucket
    - FileService:     upload validation and storage
"""
