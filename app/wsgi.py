from app.studentms import create_app

app = create_app()
