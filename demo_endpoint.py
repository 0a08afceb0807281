"""
Run the backend locally and print how to walk through an impersonation.

Needs a .env with SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and SESSION_SECRET.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Bodywork Practice Backend")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:      GET  http://localhost:8000/health")
    print("   - Effective user:    GET  http://localhost:8000/auth/me")
    print("   - Admin login:       POST http://localhost:8000/admin/login")
    print("   - Impersonate:       POST http://localhost:8000/admin/impersonate")
    print("   - End impersonation: POST http://localhost:8000/impersonate/end")
    print("   - API Docs:               http://localhost:8000/docs")
    print()
    print("📝 Walk through an impersonation with curl (cookies kept in jar.txt):")
    print('   curl -c jar.txt -X POST "http://localhost:8000/admin/login" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"email": "ops@example.com", "password": "..."}\'')
    print('   curl -b jar.txt -c jar.txt -X POST "http://localhost:8000/admin/impersonate" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"practitioner_id": "<practitioner uuid>"}\'')
    print('   curl -b jar.txt "http://localhost:8000/auth/me"')
    print('   curl -b jar.txt -c jar.txt -X POST "http://localhost:8000/impersonate/end"')
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "bodywork.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
