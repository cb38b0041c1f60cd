from gamelobby import create_app, socketio, get_engine

app = create_app()

if __name__ == '__main__':
    # Open the first round before serving so it doesn't wait on a request
    get_engine(app).start()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'], debug=True, use_reloader=False)
