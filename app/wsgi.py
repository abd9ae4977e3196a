from app.blogsync import create_app

app = create_app()
