import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "erp.main:app",
        host="127.0.0.1",  # 只监听本地
        port=8000,
        reload=True,
        log_level="info"
    )
