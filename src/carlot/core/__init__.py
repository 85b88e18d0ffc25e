# Business logic not tied to the HTTP layer:
# - credentials and session tokens
# - the owner-scoped listing store
# - listing orchestration across the record store and the blob store
