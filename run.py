"""
Development server entry point
Run the booking API with: python run.py
"""
import os

from medibook import create_app

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_PORT', 5000))
    env = os.getenv('FLASK_ENV', 'development')

    print(f"""
    ========================================
    MediBook booking API
    ========================================
    Listening:  http://{host}:{port}
    Config:     {env}
    Fail-open:  {app.config['AVAILABILITY_FAIL_OPEN']}
    ========================================
    """)

    app.run(host=host, port=port, debug=app.config.get('DEBUG', False))
