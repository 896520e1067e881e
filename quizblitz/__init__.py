"""QuizBlitz: classroom quiz games with live polled sessions"""
