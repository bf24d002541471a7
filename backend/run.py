from partytasks import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server to enable websockets in dev
    port = app.config.get('PORT', 3000)
    app.logger.info(f"Game running on http://localhost:{port}")
    socketio.run(app, host='0.0.0.0', port=port, debug=True)
